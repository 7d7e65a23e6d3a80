from __future__ import annotations

import pytest


@pytest.fixture
def search(container):
    return container.search_service


def test_short_terms_return_nothing(search, make_user):
    make_user(full_name="A")
    assert search.global_search("a") == []
    assert search.global_search("   ") == []
    assert search.global_search(None) == []


def test_results_are_typed(search, container, admin, make_user):
    make_user(full_name="Sarang Patel")
    container.task_service.create_task(actor_id=admin.id, data={"title": "Sarangpur yatra"})
    mandir = container.master_data_service.create(
        actor_id=admin.id, table="mandirs", data={"name": "Sarangpur Mandir", "description": "Hanumanji"}
    )

    results = search.global_search("sarang")

    assert [r["type"] for r in results] == ["karyakar", "task", "mandir"]
    assert results[1]["subtitle"] == "pending"
    assert results[2] == {"type": "mandir", "id": mandir, "title": "Sarangpur Mandir", "subtitle": "Hanumanji"}


def test_result_limits(search, container, admin, make_user):
    for i in range(7):
        make_user(full_name=f"Seva Member {i}")
    mandir = container.master_data_service.create(actor_id=admin.id, table="mandirs", data={"name": "Base"})
    for i in range(5):
        container.master_data_service.create(
            actor_id=admin.id, table="kshetras", data={"mandir_id": mandir, "name": f"Seva Kshetra {i}"}
        )
        container.master_data_service.create(actor_id=admin.id, table="mandirs", data={"name": f"Seva Mandir {i}"})

    results = search.global_search("seva")
    kinds = [r["type"] for r in results]
    assert kinds.count("karyakar") == 5
    assert kinds.count("kshetra") == 3
    assert kinds.count("mandir") == 3


def test_inactive_locations_are_not_found(search, container, admin):
    mandir = container.master_data_service.create(actor_id=admin.id, table="mandirs", data={"name": "Closed Mandir"})
    container.master_data_service.delete(actor_id=admin.id, table="mandirs", row_id=mandir)

    assert search.global_search("closed") == []
