from conftest import auth_header


def start(client, headers):
    r = client.post("/v1/quiz/start", headers=headers)
    assert r.status_code == 200, r.text
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200 and r.json()["status"] == "ok"


def test_start_requires_token(client, seed_bank):
    seed_bank()
    r = client.post("/v1/quiz/start")
    assert r.status_code == 401
    assert r.json()["error"]["type"] == "http_error"


def test_start_rejects_garbage_token(client):
    r = client.post("/v1/quiz/start", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_start_hides_canonical_answers(client, seed_bank, participant):
    seed_bank()
    body = start(client, participant)
    assert isinstance(body["attemptId"], int)
    assert len(body["questions"]) == 10
    for q in body["questions"]:
        assert set(q) == {"id", "text", "type", "complexity", "options"}
        assert [o["letter"] for o in q["options"]] == ["A", "B", "C", "D"]
        assert all(set(o) == {"letter", "text"} for o in q["options"])
    complexities = sorted(q["complexity"] for q in body["questions"])
    assert complexities.count("easy") == 4
    assert complexities.count("moderate") == 4
    assert complexities.count("complex") == 2


def test_submit_end_to_end(client, seed_bank, participant):
    seed_bank()
    body = start(client, participant)
    answers = [{"questionId": q["id"], "userAnswer": "a" if i < 7 else "D"} for i, q in enumerate(body["questions"])]
    r = client.post("/v1/quiz/submit", headers=participant, json={"attemptId": body["attemptId"], "answers": answers})
    assert r.status_code == 200, r.text
    result = r.json()
    assert result["score"] == 7
    assert result["totalQuestions"] == 10
    assert sum(x["isCorrect"] for x in result["results"]) == 7
    first = result["results"][0]
    assert first["correctAnswer"] == "A" and first["userAnswer"] == "a"
    assert {"questionId", "text", "type", "userAnswer", "correctAnswer", "isCorrect", "options"} == set(first)

    again = client.post("/v1/quiz/submit", headers=participant, json={"attemptId": body["attemptId"], "answers": answers})
    assert again.status_code == 409
    assert again.json()["error"]["type"] == "already_submitted"


def test_submit_foreign_question_lists_ids(client, seed_bank, participant):
    ids = seed_bank(easy=6, moderate=6, complex_=6)
    body = start(client, participant)
    members = {q["id"] for q in body["questions"]}
    foreign = next(i for level in ids.values() for i in level if i not in members)
    answers = [{"questionId": q["id"], "userAnswer": "A"} for q in body["questions"]]
    answers[-1]["questionId"] = foreign
    r = client.post("/v1/quiz/submit", headers=participant, json={"attemptId": body["attemptId"], "answers": answers})
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["type"] == "invalid_question_id"
    assert err["invalid_question_ids"] == [foreign]


def test_submit_count_mismatch(client, seed_bank, participant):
    seed_bank()
    body = start(client, participant)
    answers = [{"questionId": q["id"], "userAnswer": "A"} for q in body["questions"][:5]]
    r = client.post("/v1/quiz/submit", headers=participant, json={"attemptId": body["attemptId"], "answers": answers})
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["type"] == "answer_count_mismatch"
    assert err["expected"] == 10 and err["received"] == 5
    assert len(err["missing_question_ids"]) == 5


def test_quit_accepts_partial_answers(client, seed_bank, participant):
    seed_bank()
    body = start(client, participant)
    answers = [{"questionId": q["id"], "userAnswer": "A"} for q in body["questions"][:2]]
    r = client.post("/v1/quiz/quit", headers=participant, json={"attemptId": body["attemptId"], "answers": answers})
    assert r.status_code == 200, r.text
    result = r.json()
    assert result["score"] == 2
    assert len(result["results"]) == 10


def test_attempt_belongs_to_owner(client, seed_bank, participant):
    seed_bank()
    body = start(client, participant)
    other = auth_header("user-2")
    r = client.post("/v1/quiz/quit", headers=other, json={"attemptId": body["attemptId"], "answers": []})
    assert r.status_code == 404
    assert r.json()["error"]["type"] == "attempt_not_found"


def test_review_completed_attempt(client, seed_bank, participant):
    seed_bank()
    body = start(client, participant)
    url = f"/v1/quiz/attempts/{body['attemptId']}"
    assert client.get(url, headers=participant).status_code == 409
    client.post("/v1/quiz/quit", headers=participant, json={"attemptId": body["attemptId"], "answers": []})
    r = client.get(url, headers=participant)
    assert r.status_code == 200
    assert r.json()["score"] == 0


def test_start_with_empty_bank(client, participant):
    r = client.post("/v1/quiz/start", headers=participant)
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["type"] == "insufficient_question_pool"
    assert err["available"] == 0


def test_malformed_submit_body(client, participant):
    r = client.post("/v1/quiz/submit", headers=participant, json={"answers": "nope"})
    assert r.status_code == 422
    assert r.json()["error"]["type"] == "validation_error"
