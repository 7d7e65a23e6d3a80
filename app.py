"""Flask dev server entry point: `python app.py` or `flask --app app run`."""

import sys
from pathlib import Path

SRC = Path(__file__).resolve().parent / "src" / "seva_sarthi"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from seva_sarthi.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=bool(app.config.get("DEBUG")))
