import app as app_module


def new_game(client, mode=None):
    body = {} if mode is None else {"mode": mode}
    resp = client.post("/api/new", json=body)
    assert resp.status_code == 200
    data = resp.get_json()
    return data["game_id"], data["state"]


def move(client, game_id, index):
    return client.post(f"/api/move/{game_id}", json={"index": index})


def test_index_page(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert b"Play against AI" in resp.data
    assert b"Play against Human" in resp.data


def test_new_game_defaults_to_ai(client):
    game_id, state = new_game(client)
    assert game_id in app_module.games
    assert state["mode"] == "AI"
    assert state["board"] == [""] * 9
    assert state["turn"] == "X"
    assert state["message"] == "Next player: X"
    assert state["mode_locked"] is False


def test_new_game_rejects_unknown_mode(client):
    resp = client.post("/api/new", json={"mode": "Robot"})
    assert resp.status_code == 400


def test_unknown_game_is_404(client):
    assert client.get("/api/state/nope").status_code == 404
    assert client.post("/api/move/nope", json={"index": 0}).status_code == 404
    assert client.post("/api/mode/nope", json={"mode": "AI"}).status_code == 404
    assert client.post("/api/reset/nope").status_code == 404


def test_move_against_ai_includes_reply(client):
    game_id, _ = new_game(client, "AI")
    resp = move(client, game_id, 4)
    data = resp.get_json()
    assert data["ok"] is True
    board = data["state"]["board"]
    assert board[4] == "X"
    assert board[0] == "O"
    assert data["state"]["turn"] == "X"
    assert data["state"]["mode_locked"] is True
    assert "game_over" not in data


def test_invalid_index_is_400(client):
    game_id, _ = new_game(client)
    for bad in ("4", 9, -1, True, None, 1.5):
        assert move(client, game_id, bad).status_code == 400
    assert client.post(f"/api/move/{game_id}", json={}).status_code == 400


def test_occupied_cell_is_rejected_without_error(client):
    game_id, _ = new_game(client, "Human")
    move(client, game_id, 0)
    resp = move(client, game_id, 0)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["ok"] is False
    assert data["state"]["turn"] == "O"


def test_game_over_reported_exactly_once(client):
    game_id, _ = new_game(client, "Human")
    for i in (0, 3, 1, 4):
        data = move(client, game_id, i).get_json()
        assert "game_over" not in data
    data = move(client, game_id, 2).get_json()
    assert data["ok"] is True
    assert data["game_over"] == "Winner: X"
    assert data["state"]["outcome"] == {"status": "won", "winner": "X"}
    assert data["state"]["winning_line"] == [0, 1, 2]

    data = move(client, game_id, 5).get_json()
    assert data["ok"] is False
    assert "game_over" not in data
    state = client.get(f"/api/state/{game_id}").get_json()["state"]
    assert state["message"] == "Winner: X"


def test_mode_change_only_before_first_move(client):
    game_id, _ = new_game(client, "AI")
    data = client.post(f"/api/mode/{game_id}", json={"mode": "Human"}).get_json()
    assert data["ok"] is True
    assert data["state"]["mode"] == "Human"

    move(client, game_id, 0)
    data = client.post(f"/api/mode/{game_id}", json={"mode": "AI"}).get_json()
    assert data["ok"] is False
    assert data["state"]["mode"] == "Human"

    resp = client.post(f"/api/mode/{game_id}", json={"mode": "Robot"})
    assert resp.status_code == 400


def test_reset_keeps_mode(client):
    game_id, _ = new_game(client, "Human")
    for i in (0, 3, 1, 4, 2):
        move(client, game_id, i)
    state = client.post(f"/api/reset/{game_id}").get_json()["state"]
    assert state["board"] == [""] * 9
    assert state["turn"] == "X"
    assert state["outcome"]["status"] == "in_progress"
    assert state["mode"] == "Human"


def test_non_object_json_body_is_400(client):
    game_id, _ = new_game(client)
    for body in ([1], "x", 5):
        assert client.post("/api/new", json=body).status_code == 400
        assert client.post(f"/api/move/{game_id}", json=body).status_code == 400
        assert client.post(f"/api/mode/{game_id}", json=body).status_code == 400
    state = client.get(f"/api/state/{game_id}").get_json()["state"]
    assert state["board"] == [""] * 9


def test_template_ships_next_to_app():
    from pathlib import Path

    template_dir = Path(app_module.app.root_path) / app_module.app.template_folder
    assert (template_dir / "index.html").is_file()
