"""
Integration tests for API endpoints
"""
import pytest
from fastapi.testclient import TestClient

from quizforge.main import app

client = TestClient(app)


class TestHealthEndpoints:
    def test_health_check(self):
        """Test health check endpoint"""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] in ("healthy", "degraded")
        assert "timestamp" in data
        assert data["checks"]["quiz_backend"]["mode"] == "offline"

    def test_request_id_header(self):
        """A caller-supplied request id is echoed back, otherwise one is generated"""
        response = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["x-request-id"] == "abc123"
        assert client.get("/health").headers["x-request-id"]

    def test_metrics_endpoint(self):
        """Test metrics endpoint"""
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]


class TestDocumentEndpoints:
    def test_upload_text(self, biology_text):
        """Plain text uploads come back cleaned and counted"""
        response = client.post(
            "/documents/upload",
            files={"file": ("notes.txt", biology_text.encode("utf-8"), "text/plain")},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["originalName"] == "notes.txt"
        assert data["wordCount"] > 10
        assert "analysis" not in data

    def test_upload_with_analysis(self, biology_text):
        response = client.post(
            "/documents/upload",
            files={"file": ("notes.md", biology_text.encode("utf-8"), "text/markdown")},
            data={"analyze": "true"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["detectedTopic"] == "Biology"
        assert data["analysis"]["headings"][0] == "Cell Biology Basics"

    def test_upload_unsupported_type(self):
        response = client.post(
            "/documents/upload",
            files={"file": ("photo.png", b"\x89PNG\r\n", "image/png")},
        )
        assert response.status_code == 415
        data = response.json()
        assert data["success"] is False
        assert data["errorType"] == "UnsupportedFileType"

    def test_upload_too_short(self):
        response = client.post(
            "/documents/upload",
            files={"file": ("tiny.txt", b"Too short to quiz.", "text/plain")},
        )
        assert response.status_code == 400
        assert response.json()["errorType"] == "InsufficientContent"

    def test_analyze_text(self, biology_text):
        response = client.post("/documents/analyze", json={"content": biology_text})
        assert response.status_code == 200
        data = response.json()
        assert data["analysis"]["totalWords"] > 0
        assert data["detectedTopic"] == "Biology"

    def test_analyze_validates_pasted_text(self):
        response = client.post("/documents/analyze", json={"content": "Too short to analyze."})
        assert response.status_code == 400
        assert response.json()["errorType"] == "InsufficientContent"


class TestQuizEndpoints:
    def test_generate_quiz(self, biology_text):
        """Offline generation returns exactly the requested number of questions"""
        response = client.post("/quiz/generate", json={
            "subject": "Science",
            "content": biology_text,
            "difficulty": "easy",
            "questionCount": 6,
            "questionTypes": ["mcq", "short", "fillblank"],
            "timeLimit": 15,
        })
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["source"] == "offline"
        assert data["detectedTopic"] == "Biology"
        assert len(data["quiz"]["questions"]) == 6
        assert data["quiz"]["timeLimit"] == 15
        for question in data["quiz"]["questions"]:
            if question["type"] == "mcq":
                assert len(question["options"]) == 4
                assert question["correctAnswer"] in question["options"]
            else:
                assert "options" not in question

    @pytest.mark.parametrize("overrides", [
        {"content": "too short"},
        {"questionCount": 3},
        {"questionTypes": ["essay"]},
        {"subject": ""},
    ])
    def test_generate_rejects_invalid_request(self, biology_text, overrides):
        payload = {"subject": "Science", "content": biology_text, **overrides}
        response = client.post("/quiz/generate", json=payload)
        assert response.status_code == 400
        assert response.json()["errorType"] == "InvalidQuizRequest"

    def test_grade_quiz(self, biology_text):
        generated = client.post("/quiz/generate", json={
            "subject": "Biology",
            "content": biology_text,
            "questionCount": 5,
            "questionTypes": ["mcq"],
        }).json()["quiz"]
        answers = [q["correctAnswer"] for q in generated["questions"]]

        response = client.post("/quiz/grade", json={"quiz": generated, "answers": answers})
        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 5
        assert data["letterGrade"] == "A"
        assert data["weakTopics"] == []

    def test_generate_cleans_pasted_text(self):
        """CRLF line breaks inside a sentence are re-joined before questions are built"""
        content = (
            "Mitochondria is the powerhouse\r\nof the cell and it makes energy for the body.\x0c\r\n"
            "Photosynthesis is the process by which green plants\r\nconvert sunlight into chemical energy."
        )
        response = client.post("/quiz/generate", json={
            "subject": "Science",
            "content": content,
            "questionCount": 5,
            "questionTypes": ["short"],
        })
        assert response.status_code == 200
        for question in response.json()["quiz"]["questions"]:
            assert question["correctAnswer"] != "the powerhouse"
            assert "\r" not in question["question"] + question["correctAnswer"]

    def test_generate_rejects_too_few_words(self):
        response = client.post("/quiz/generate", json={
            "subject": "Science",
            "content": "Supercalifragilistic " * 4 + "antidisestablishment",
        })
        assert response.status_code == 400
        assert response.json()["errorType"] == "InsufficientContent"
