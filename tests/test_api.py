def create_room(client, name="Garagem"):
    res = client.post("/rooms", json={"name": name})
    assert res.status_code == 201
    return res.json()


def create_rack(client, room_id, **fields):
    payload = {"room_id": room_id, "name": "Estante", "max_shelves": 2, "positions_per_shelf": 3}
    payload.update(fields)
    res = client.post("/racks", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def create_box(client, room_id, **fields):
    res = client.post("/boxes", json={"room_id": room_id, **fields})
    assert res.status_code == 201, res.text
    return res.json()


def place(client, box_id, rack_id, shelf, pos):
    return client.post(
        f"/boxes/{box_id}/place",
        json={"rack_id": rack_id, "shelf_number": shelf, "position_number": pos},
    )


def test_rack_creation_and_numbering(client):
    room = create_room(client)
    rack = create_rack(client, room["id"])
    assert rack["rack_number"] == 1
    assert rack["position_count"] == 6
    assert [p["code"] for p in rack["positions"]][:3] == ["S1-P1", "S1-P2", "S1-P3"]
    assert all(p["capacity"] == 4 and p["occupancy"] == 0 for p in rack["positions"])

    res = client.get("/racks/next-number", params={"room_id": room["id"]})
    assert res.json() == {"next_available_rack_number": 2}

    res = client.post("/racks", json={"room_id": room["id"], "name": "Dup", "rack_number": 1})
    assert res.status_code == 409
    body = res.json()
    assert body["code"] == "CONFLICT"
    assert body["details"]["suggestion"] == 2


def test_invalid_layout_returns_400(client):
    room = create_room(client)
    res = client.post("/racks", json={"room_id": room["id"], "name": "Alta", "max_shelves": 21})
    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"


def test_placement_flow(client):
    room = create_room(client)
    rack = create_rack(client, room["id"])
    boxes = [create_box(client, room["id"]) for _ in range(5)]
    assert [b["box_number"] for b in boxes] == [1, 2, 3, 4, 5]
    assert all(b["is_staging"] for b in boxes)

    for box in boxes[:4]:
        res = place(client, box["id"], rack["id"], 1, 2)
        assert res.status_code == 200
        assert res.json()["location"]["code"] == "S1-P2"

    res = place(client, boxes[4]["id"], rack["id"], 1, 2)
    assert res.status_code == 409
    assert res.json()["code"] == "CAPACITY_EXCEEDED"
    assert res.json()["details"]["capacity"] == 4

    positions = client.get(f"/racks/{rack['id']}/positions").json()
    target = next(p for p in positions if p["code"] == "S1-P2")
    assert target["occupancy"] == 4
    assert target["available"] == 0

    res = client.post(f"/boxes/{boxes[0]['id']}/place", json={"to_staging": True})
    assert res.json()["is_staging"] is True
    assert res.json()["location"] is None

    staged = client.get("/boxes", params={"room_id": room["id"], "staging": True}).json()
    assert {b["id"] for b in staged} == {boxes[0]["id"], boxes[4]["id"]}


def test_place_requires_full_target(client):
    room = create_room(client)
    box = create_box(client, room["id"])
    res = client.post(f"/boxes/{box['id']}/place", json={"rack_id": 1})
    assert res.status_code == 400


def test_unknown_box_is_404(client):
    res = client.get("/boxes/999")
    assert res.status_code == 404
    assert res.json()["code"] == "NOT_FOUND"


def test_locked_rack_returns_423(client):
    room = create_room(client)
    rack = create_rack(client, room["id"])
    box = create_box(client, room["id"])
    place(client, box["id"], rack["id"], 1, 1)
    res = client.post("/items", json={"room_id": room["id"], "name": "Furadeira", "box_id": box["id"]})
    assert res.status_code == 201

    assert client.get(f"/racks/{rack['id']}").json()["config_locked"] is True

    res = client.put(f"/racks/{rack['id']}", json={"positions_per_shelf": 4})
    assert res.status_code == 423
    assert res.json()["code"] == "CONFIG_LOCKED"

    res = client.put(f"/racks/{rack['id']}", json={"name": "Estante azul"})
    assert res.status_code == 200
    assert res.json()["name"] == "Estante azul"


def test_capacity_patch(client):
    room = create_room(client)
    rack = create_rack(client, room["id"])
    first, second = rack["positions"][0], rack["positions"][1]

    res = client.patch(
        f"/racks/{rack['id']}/capacities",
        json={"capacities": {str(first["id"]): 2, str(second["id"]): 9}},
    )
    assert res.status_code == 400

    res = client.patch(f"/racks/{rack['id']}/capacities", json={"capacities": {str(first["id"]): 2}})
    assert res.status_code == 200
    capacities = {p["id"]: p["capacity"] for p in res.json()["positions"]}
    assert capacities[first["id"]] == 2
    assert capacities[second["id"]] == 4


def test_room_deletion_safety(client):
    room = create_room(client)
    rack = create_rack(client, room["id"])

    report = client.get(f"/safety/room/{room['id']}").json()
    assert report["can_delete"] is False
    assert report["counts"]["racks"] == 1

    res = client.delete(f"/rooms/{room['id']}")
    assert res.status_code == 409
    assert res.json()["code"] == "DELETION_BLOCKED"
    assert res.json()["details"]["blockers"] == ["1 estante"]

    assert client.delete(f"/racks/{rack['id']}").status_code == 204
    res = client.delete(f"/rooms/{room['id']}")
    assert res.status_code == 200
    assert res.json()["is_active"] is False

    deleted = client.get("/rooms/deleted").json()
    assert [d["room"]["id"] for d in deleted["deleted_rooms"]] == [room["id"]]

    res = client.post(f"/rooms/{room['id']}/restore")
    assert res.status_code == 200
    assert res.json()["room"]["is_active"] is True


def test_safety_rejects_unknown_entity_type(client):
    res = client.get("/safety/shelf/1")
    assert res.status_code == 400


def test_box_number_helpers(client):
    room = create_room(client)
    create_box(client, room["id"], box_number=1)
    create_box(client, room["id"], box_number=3)

    suggestion = client.get("/boxes/suggest-number", params={"room_id": room["id"]}).json()
    assert suggestion["suggested_number"] == 2

    result = client.get("/boxes/validate-number", params={"room_id": room["id"], "box_number": 3}).json()
    assert result["is_available"] is False
    assert result["suggestion"] == 2


def test_actor_recorded_in_movements(client):
    room = create_room(client)
    res = client.post("/boxes", json={"room_id": room["id"]}, headers={"X-User": "ana"})
    box = res.json()

    movements = client.get("/movements", params={"box_id": box["id"]}).json()
    assert movements[0]["type"] == "CREATE"
    assert movements[0]["actor"] == "ana"


def test_room_change_over_api(client):
    garage = create_room(client)
    attic = create_room(client, "Sótão")
    rack = create_rack(client, garage["id"])
    box = create_box(client, garage["id"])
    place(client, box["id"], rack["id"], 2, 1)
    client.post("/items", json={"room_id": garage["id"], "name": "Barraca", "box_id": box["id"]})

    res = client.put(f"/boxes/{box['id']}", json={"room_id": attic["id"]})
    assert res.status_code == 200
    body = res.json()
    assert body["room_id"] == attic["id"]
    assert body["is_staging"] is True
    assert body["item_count"] == 1

    items = client.get("/items", params={"box_id": box["id"]}).json()
    assert items[0]["room_id"] == attic["id"]


def test_restructure_with_empty_placed_box(client):
    room = create_room(client)
    rack = create_rack(client, room["id"])
    box = create_box(client, room["id"])
    place(client, box["id"], rack["id"], 2, 3)

    res = client.put(f"/racks/{rack['id']}", json={"positions_per_shelf": 5})
    assert res.status_code == 200, res.text
    assert res.json()["position_count"] == 10

    body = client.get(f"/boxes/{box['id']}").json()
    assert body["is_staging"] is True
    assert body["location"] is None


def test_rack_with_placed_box_cannot_be_deleted(client):
    room = create_room(client)
    rack = create_rack(client, room["id"])
    box = create_box(client, room["id"])
    place(client, box["id"], rack["id"], 1, 1)

    res = client.delete(f"/racks/{rack['id']}")
    assert res.status_code == 409
    assert res.json()["code"] == "DELETION_BLOCKED"
    assert res.json()["details"]["counts"]["boxes"] == 1

    client.post(f"/boxes/{box['id']}/place", json={"to_staging": True})
    assert client.delete(f"/racks/{rack['id']}").status_code == 204
    assert client.get(f"/racks/{rack['id']}").status_code == 404


def test_bulk_room_delete(client):
    garage = create_room(client)
    attic = create_room(client, "Sótão")
    cellar = create_room(client, "Porão")
    create_rack(client, cellar["id"])

    res = client.post("/rooms/bulk-delete", json={"room_ids": [garage["id"], cellar["id"]]})
    assert res.status_code == 409
    body = res.json()
    assert body["code"] == "DELETION_BLOCKED"
    assert body["details"]["blocked_from_deletion"] == [cellar["id"]]
    assert body["details"]["safe_to_delete"] == [garage["id"]]

    res = client.post("/rooms/bulk-delete", json={"room_ids": [garage["id"], attic["id"]]})
    assert res.status_code == 200
    assert sorted(res.json()["deleted"]) == sorted([garage["id"], attic["id"]])
    assert [r["id"] for r in client.get("/rooms").json()] == [cellar["id"]]

    res = client.post("/rooms/bulk-delete", json={"room_ids": list(range(1, 12))})
    assert res.status_code == 400
