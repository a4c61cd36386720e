from __future__ import annotations

from fair_review.app.review.llm import StubReviewBackend
from fair_review.app.review.service import ReviewService

PROJECT_PAYLOAD = {
    "projectName": "招商引资政策审查",
    "policyTitle": "关于促进本地制造业发展的若干措施",
    "org": "市发展改革委",
    "draftType": "规范性文件",
    "scope": "全市",
    "releaseDate": "2024-06-01",
    "isSecret": False,
    "applyException": False,
}


def test_review_rejects_empty_content(client):
    response = client.post("/api/review", json={"content": ""})

    assert response.status_code == 400
    assert response.json() == {"error": "content 不能为空"}


def test_review_rejects_missing_body(client):
    response = client.post("/api/review")

    assert response.status_code == 400
    assert response.json() == {"error": "content 不能为空"}


def test_review_treats_array_body_as_missing_content(client):
    response = client.post("/api/review", json=[])

    assert response.status_code == 400
    assert response.json() == {"error": "content 不能为空"}


def test_review_ignores_non_object_options(client):
    response = client.post("/api/review", json={"content": "禁止向外地企业供货", "options": True})

    assert response.status_code == 200
    assert response.json()["riskScore"] == 65


def test_review_accepts_non_text_scene_and_jurisdiction(client):
    response = client.post(
        "/api/review",
        json={"content": "禁止向外地企业供货", "businessType": 123, "jurisdiction": {"region": "cn"}},
    )

    assert response.status_code == 200
    assert response.json()["riskScore"] == 65


def test_review_returns_normalized_issues(client):
    response = client.post("/api/review", json={"content": "禁止向外地企业供货"})

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"riskScore", "summary", "issues", "modelNote"}
    assert body["riskScore"] == 65
    assert body["issues"]
    for issue in body["issues"]:
        assert set(issue) == {"title", "level", "description", "suggestion", "lawReference"}


def test_review_reports_upstream_format_error(client):
    from fair_review.app.core import dependencies
    from fair_review.app.main import app

    app.dependency_overrides[dependencies.get_review_service] = lambda: ReviewService(
        StubReviewBackend(reply="<html>not json</html>")
    )

    response = client.post("/api/review", json={"content": "文本"})

    assert response.status_code == 500
    assert response.json() == {"error": "解析大模型结果失败"}


def test_project_workflow_end_to_end(client):
    created = client.post("/api/projects", json=PROJECT_PAYLOAD)
    assert created.status_code == 201
    project = created.json()
    assert project["status"] == "DRAFT"
    assert project["aiReview"] is None
    project_id = project["id"]

    reviewed = client.post(f"/api/projects/{project_id}/review", params={"wait": True})
    assert reviewed.status_code == 200
    review = reviewed.json()["aiReview"]
    assert reviewed.json()["status"] == "AI_COMPLETED"
    assert 2 <= len(review["riskItems"]) <= 4
    first_id = review["riskItems"][0]["id"]

    saved = client.put(
        f"/api/projects/{project_id}/actions",
        json={"actions": {first_id: {"type": "adopt", "desc": "已调整"}}},
    )
    assert saved.status_code == 200
    assert saved.json()["aiReview"]["actions"] == {first_id: {"type": "adopt", "desc": "已调整"}}

    submitted = client.post(f"/api/projects/{project_id}/submit")
    assert submitted.status_code == 200
    assert submitted.json()["status"] == "DEPT_REVIEWING"

    report = client.get(f"/api/projects/{project_id}/report").json()
    assert report["projectName"] == PROJECT_PAYLOAD["projectName"]
    assert report["rows"][0]["actionLabel"] == "采纳调整"

    dashboard = client.get("/api/projects/dashboard").json()
    assert (dashboard["total"], dashboard["completed"], dashboard["pending"]) == (1, 0, 0)


def test_async_review_runs_in_background(client):
    project_id = client.post("/api/projects", json=PROJECT_PAYLOAD).json()["id"]

    started = client.post(f"/api/projects/{project_id}/review", params={"wait": False})

    assert started.status_code == 202
    assert started.json()["status"] == "AI_REVIEWING"
    assert client.get(f"/api/projects/{project_id}").json()["status"] == "AI_COMPLETED"


def test_second_review_request_conflicts(client):
    project_id = client.post("/api/projects", json=PROJECT_PAYLOAD).json()["id"]
    client.post(f"/api/projects/{project_id}/review", params={"wait": True})

    response = client.post(f"/api/projects/{project_id}/review", params={"wait": True})

    assert response.status_code == 409


def test_submit_without_review_fails_without_state_change(client):
    project_id = client.post("/api/projects", json=PROJECT_PAYLOAD).json()["id"]

    response = client.post(f"/api/projects/{project_id}/submit")

    assert response.status_code == 409
    assert response.json() == {"error": "请先完成 AI 审查"}
    assert client.get(f"/api/projects/{project_id}").json()["status"] == "DRAFT"


def test_create_project_validation_error(client):
    response = client.post("/api/projects", json={**PROJECT_PAYLOAD, "projectName": ""})

    assert response.status_code == 400
    assert response.json() == {"error": "请填写完整的项目名称和文件名称"}


def test_unknown_project_returns_not_found(client):
    response = client.get("/api/projects/P-missing")

    assert response.status_code == 404
    assert response.json() == {"error": "未找到该项目"}


def test_statistics_endpoint(client):
    client.post("/api/projects", json=PROJECT_PAYLOAD)

    stats = client.get("/api/projects/stats").json()

    assert stats["risk"][-1] == {"label": "未审", "count": 1, "percent": 100}
    assert stats["status"] == [{"label": "DRAFT", "count": 1, "percent": 100}]


def test_knowledge_search(client):
    everything = client.get("/api/knowledge").json()["items"]
    subsidies = client.get("/api/knowledge", params={"q": "补贴"}).json()["items"]

    assert len(everything) == 3
    assert [item["title"] for item in subsidies] == ["地方企业补贴是否允许"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
