"""End-to-end tests of the REST API on the in-memory store."""

import json
from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi import status

from eduassess.ai.providers import GenerationResult
from eduassess.errors import AiProviderError
from eduassess.models.enums import AiProvider, UserRole
from eduassess.schemas import utcnow
from conftest import make_user


def ai_reply(payload) -> GenerationResult:
    return GenerationResult(text=json.dumps(payload), provider=AiProvider.gemini, model="gemini-2.5-flash")


@pytest.fixture
def prof(api_storage):
    return make_user(api_storage, "prof_ada", role=UserRole.instructor)


@pytest.fixture
def other_prof(api_storage):
    return make_user(api_storage, "prof_bob", role=UserRole.instructor)


@pytest.fixture
def student(api_storage):
    return make_user(api_storage, "student_sam")


@pytest.fixture
def admin(api_storage):
    return make_user(api_storage, "root_admin", role=UserRole.admin)


@pytest.fixture
def prof_headers(auth_headers, prof):
    return auth_headers(prof)


@pytest.fixture
def student_headers(auth_headers, student):
    return auth_headers(student)


@pytest.fixture
def course_id(client, prof_headers, student):
    response = client.post("/api/courses", headers=prof_headers, json={
        "name": "Intro to Biology", "code": "BIO101", "semester": "Fall 2026",
    })
    course_id = response.json()["id"]
    client.post(f"/api/courses/{course_id}/enroll", headers=prof_headers, json={"studentEmail": student.email})
    return course_id


@pytest.fixture
def published_quiz(client, prof_headers, course_id):
    response = client.post("/api/quizzes", headers=prof_headers, json={
        "courseId": course_id,
        "title": "Cells Quiz",
        "randomizeQuestions": False,
        "randomizeOptions": False,
        "questions": [
            {"type": "mcq", "text": "2 + 2?", "options": ["3", "4", "5"], "correctAnswer": "4", "points": 2},
            {"type": "true_false", "text": "Cells have membranes.", "correctAnswer": "true"},
        ],
    })
    quiz = response.json()
    client.post(f"/api/quizzes/{quiz['id']}/publish", headers=prof_headers)
    return quiz


@pytest.fixture
def assignment_id(client, prof_headers, course_id):
    response = client.post("/api/assignments", headers=prof_headers, json={
        "courseId": course_id,
        "title": "Lab Report",
        "maxScore": 50,
        "status": "published",
        "rubric": [{"criterion": "Method", "maxPoints": 20}, {"criterion": "Analysis", "maxPoints": 30}],
    })
    return response.json()["id"]


class TestAppEndpoints:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "EduAssess API"

    def test_health_reports_storage(self, client, api_storage):
        with patch("eduassess.main.get_storage", return_value=api_storage):
            response = client.get("/health")

        assert response.json()["status"] == "healthy"
        assert response.json()["storage"] == "memory"


class TestCourses:
    def test_create_and_list(self, client, prof_headers, other_prof, auth_headers, course_id):
        mine = client.get("/api/courses", headers=prof_headers).json()
        theirs = client.get("/api/courses", headers=auth_headers(other_prof)).json()

        assert [c["code"] for c in mine] == ["BIO101"]
        assert mine[0]["instructorId"]
        assert theirs == []

    def test_students_cannot_create_courses(self, client, student_headers):
        response = client.post("/api/courses", headers=student_headers, json={
            "name": "Hack", "code": "X", "semester": "Fall",
        })

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_enrolled_student_sees_course(self, client, student_headers, course_id):
        courses = client.get("/api/courses", headers=student_headers).json()

        assert [c["id"] for c in courses] == [course_id]

    def test_other_instructor_cannot_edit(self, client, auth_headers, other_prof, course_id):
        response = client.patch(f"/api/courses/{course_id}", headers=auth_headers(other_prof), json={"name": "Mine now"})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_course(self, client, prof_headers):
        response = client.get("/api/courses/missing", headers=prof_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Course not found"

    def test_enroll_twice_rejected(self, client, prof_headers, student, course_id):
        response = client.post(f"/api/courses/{course_id}/enroll", headers=prof_headers, json={"studentEmail": student.email})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_only_students_enrolled(self, client, prof_headers, other_prof, course_id):
        response = client.post(f"/api/courses/{course_id}/enroll", headers=prof_headers, json={"studentEmail": other_prof.email})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Only students can be enrolled"

    def test_unenroll(self, client, prof_headers, student, course_id):
        response = client.delete(f"/api/courses/{course_id}/enroll/{student.id}", headers=prof_headers)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get(f"/api/courses/{course_id}/students", headers=prof_headers).json() == []

    def test_gradebook_csv(self, client, prof_headers, course_id, published_quiz):
        response = client.get(f"/api/courses/{course_id}/gradebook?format=csv", headers=prof_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="gradebook-Intro-to-Biology.csv"' in response.headers["content-disposition"]
        assert response.text.splitlines()[0] == 'Student Name,Email,"Cells Quiz",Overall Average'

    def test_gradebook_csv_non_latin_course_name(self, client, prof_headers):
        course_id = client.post("/api/courses", headers=prof_headers, json={
            "name": "生物学 入门", "code": "BIO-CN", "semester": "Fall 2026",
        }).json()["id"]

        response = client.get(f"/api/courses/{course_id}/gradebook?format=csv", headers=prof_headers)

        assert response.status_code == status.HTTP_200_OK
        disposition = response.headers["content-disposition"]
        assert 'filename="gradebook-___-__.csv"' in disposition
        assert "filename*=UTF-8''gradebook-%E7%94%9F%E7%89%A9%E5%AD%A6-%E5%85%A5%E9%97%A8.csv" in disposition

    def test_gradebook_json(self, client, prof_headers, course_id):
        gradebook = client.get(f"/api/courses/{course_id}/gradebook", headers=prof_headers).json()

        assert gradebook["course"]["id"] == course_id
        assert len(gradebook["students"]) == 1


class TestQuizzes:
    def test_inline_questions_are_ordered(self, client, prof_headers, published_quiz):
        links = client.get(f"/api/quizzes/{published_quiz['id']}/questions", headers=prof_headers).json()

        assert [link["orderIndex"] for link in links] == [0, 1]
        assert links[0]["question"]["text"] == "2 + 2?"

    def test_cannot_publish_empty_quiz(self, client, prof_headers, course_id):
        quiz = client.post("/api/quizzes", headers=prof_headers, json={"courseId": course_id, "title": "Empty"}).json()

        response = client.post(f"/api/quizzes/{quiz['id']}/publish", headers=prof_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_students_only_see_published(self, client, prof_headers, student_headers, course_id, published_quiz):
        client.post("/api/quizzes", headers=prof_headers, json={"courseId": course_id, "title": "Draft"})

        quizzes = client.get(f"/api/quizzes?courseId={course_id}", headers=student_headers).json()

        assert [q["title"] for q in quizzes] == ["Cells Quiz"]

    def test_add_question_appends_and_rejects_duplicates(self, client, prof_headers, course_id, published_quiz):
        question = client.post("/api/questions", headers=prof_headers, json={
            "courseId": course_id, "type": "short_answer", "text": "Powerhouse?", "correctAnswer": "Mitochondria",
        }).json()
        path = f"/api/quizzes/{published_quiz['id']}/questions"

        added = client.post(path, headers=prof_headers, json={"questionId": question["id"]})
        again = client.post(path, headers=prof_headers, json={"questionId": question["id"]})

        assert added.status_code == status.HTTP_201_CREATED
        assert added.json()["orderIndex"] == 2
        assert again.status_code == status.HTTP_400_BAD_REQUEST

    def test_take_hides_answers(self, client, student_headers, published_quiz):
        response = client.get(f"/api/quiz/{published_quiz['id']}/take", headers=student_headers)

        assert response.status_code == status.HTTP_200_OK
        questions = response.json()["questions"]
        assert [q["text"] for q in questions] == ["2 + 2?", "Cells have membranes."]
        assert all("correctAnswer" not in q for q in questions)

    def test_start_and_submit(self, client, student_headers, published_quiz):
        quiz_id = published_quiz["id"]
        take = client.get(f"/api/quiz/{quiz_id}/take", headers=student_headers).json()
        submission_id = client.post(f"/api/quiz/{quiz_id}/start", headers=student_headers).json()["submissionId"]

        response = client.post(f"/api/quiz/{quiz_id}/submit", headers=student_headers, json={
            "submissionId": submission_id,
            "answers": [{"questionId": take["questions"][0]["id"], "answer": "4"}],
        })

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"submissionId": submission_id, "score": 2, "totalPoints": 3, "percentage": 67}

    def test_submit_someone_elses_attempt(self, client, api_storage, auth_headers, student_headers, course_id, published_quiz, prof_headers):
        classmate = make_user(api_storage, "student_kim")
        client.post(f"/api/courses/{course_id}/enroll", headers=prof_headers, json={"studentEmail": classmate.email})
        submission_id = client.post(f"/api/quiz/{published_quiz['id']}/start", headers=student_headers).json()["submissionId"]

        response = client.post(f"/api/quiz/{published_quiz['id']}/submit", headers=auth_headers(classmate), json={
            "submissionId": submission_id, "answers": [],
        })

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unenrolled_student_cannot_take(self, client, api_storage, auth_headers, published_quiz):
        outsider = make_user(api_storage, "student_out")

        response = client.get(f"/api/quiz/{published_quiz['id']}/take", headers=auth_headers(outsider))

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestPublicLinks:
    def test_generate_view_and_submit(self, client, prof_headers, published_quiz, monkeypatch):
        monkeypatch.setenv("PUBLIC_BASE_URL", "https://quiz.example.com")
        link = client.post(f"/api/quizzes/{published_quiz['id']}/generate-public-link", headers=prof_headers).json()
        token = link["quiz"]["publicAccessToken"]

        assert link["publicUrl"] == f"https://quiz.example.com/public/quiz/{token}"

        view = client.get(f"/api/public/quiz/{token}")
        assert view.status_code == status.HTTP_200_OK
        assert view.json()["canAttempt"] is True
        assert view.json()["requiredFields"] == ["name", "email"]

        question_id = view.json()["questions"][1]["id"]
        result = client.post(f"/api/public/quiz/{token}/submit", json={
            "identificationData": {"name": "Pat Doe", "email": "pat@example.com"},
            "answers": [{"questionId": question_id, "answer": "true"}],
        })
        assert result.status_code == status.HTTP_200_OK
        assert result.json()["percentage"] == 33
        assert result.json()["passed"] is False

        submissions = client.get(f"/api/quizzes/{published_quiz['id']}/public-submissions", headers=prof_headers).json()
        assert len(submissions) == 1

    def test_view_only_link_refuses_submission(self, client, prof_headers, published_quiz):
        link = client.post(
            f"/api/quizzes/{published_quiz['id']}/generate-public-link",
            headers=prof_headers,
            json={"permission": "view", "requiredFields": []},
        ).json()

        response = client.post(f"/api/public/quiz/{link['quiz']['publicAccessToken']}/submit", json={"answers": []})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_missing_identification(self, client, prof_headers, published_quiz):
        token = client.post(
            f"/api/quizzes/{published_quiz['id']}/generate-public-link", headers=prof_headers,
        ).json()["quiz"]["publicAccessToken"]

        response = client.post(f"/api/public/quiz/{token}/submit", json={"identificationData": {"name": "Pat"}})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_disabled_link_is_gone(self, client, prof_headers, published_quiz):
        quiz_id = published_quiz["id"]
        token = client.post(f"/api/quizzes/{quiz_id}/generate-public-link", headers=prof_headers).json()["quiz"]["publicAccessToken"]

        client.post(f"/api/quizzes/{quiz_id}/disable-public-link", headers=prof_headers)

        assert client.get(f"/api/public/quiz/{token}").status_code == status.HTTP_404_NOT_FOUND

    def test_students_never_see_token(self, client, prof_headers, student_headers, published_quiz):
        client.post(f"/api/quizzes/{published_quiz['id']}/generate-public-link", headers=prof_headers)

        quiz = client.get(f"/api/quizzes/{published_quiz['id']}", headers=student_headers).json()

        assert quiz["publicAccessToken"] is None


class TestAssignments:
    def test_submit_and_grade(self, client, prof_headers, student_headers, assignment_id):
        submission = client.post("/api/assignment-submissions", headers=student_headers, json={
            "assignmentId": assignment_id, "content": "Cells divide by mitosis.",
        }).json()

        graded = client.patch(f"/api/assignment-submissions/{submission['id']}/grade", headers=prof_headers, json={
            "rubricScores": [{"criterion": "Method", "score": 15}, {"criterion": "Analysis", "score": 20}],
        })

        assert graded.status_code == status.HTTP_200_OK
        assert graded.json()["score"] == 35
        assert graded.json()["status"] == "graded"

    def test_grade_over_max_rejected(self, client, prof_headers, student_headers, assignment_id):
        submission = client.post("/api/assignment-submissions", headers=student_headers, json={
            "assignmentId": assignment_id, "content": "Report",
        }).json()

        response = client.patch(f"/api/assignment-submissions/{submission['id']}/grade", headers=prof_headers, json={"score": 80})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_late_submission_rejected(self, client, prof_headers, student_headers, assignment_id):
        client.patch(f"/api/assignments/{assignment_id}", headers=prof_headers, json={
            "dueDate": (utcnow() - timedelta(days=1)).isoformat(),
        })

        response = client.post("/api/assignment-submissions", headers=student_headers, json={
            "assignmentId": assignment_id, "content": "Sorry I'm late",
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "The due date for this assignment has passed"

    def test_pending_assignments(self, client, student_headers, assignment_id):
        before = client.get("/api/student/assignments/pending", headers=student_headers).json()
        client.post("/api/assignment-submissions", headers=student_headers, json={
            "assignmentId": assignment_id, "content": "Report",
        })
        after = client.get("/api/student/assignments/pending", headers=student_headers).json()

        assert [a["id"] for a in before] == [assignment_id]
        assert after == []

    @patch("eduassess.ai.features.generate_with_provider")
    def test_ai_grade_failure_is_bad_gateway(self, mock_generate, client, prof_headers, student_headers, assignment_id):
        mock_generate.side_effect = AiProviderError("gemini API error 500")
        submission = client.post("/api/assignment-submissions", headers=student_headers, json={
            "assignmentId": assignment_id, "content": "Report",
        }).json()

        response = client.post(f"/api/assignment-submissions/{submission['id']}/ai-grade", headers=prof_headers)

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        stored = client.get(f"/api/assignment-submissions/{submission['id']}", headers=prof_headers).json()
        assert stored["status"] == "submitted"

    @patch("eduassess.ai.features.generate_with_provider")
    def test_ai_grade(self, mock_generate, client, prof_headers, student_headers, assignment_id):
        mock_generate.return_value = ai_reply({"score": 42, "feedback": "Thorough"})
        submission = client.post("/api/assignment-submissions", headers=student_headers, json={
            "assignmentId": assignment_id, "content": "Report",
        }).json()

        response = client.post(f"/api/assignment-submissions/{submission['id']}/ai-grade", headers=prof_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["score"] == 42
        assert response.json()["submission"]["aiFeedback"] == "Thorough"


    @patch("eduassess.ai.features.generate_with_provider")
    def test_ai_grade_all(self, mock_generate, client, prof_headers, student_headers, assignment_id):
        mock_generate.return_value = ai_reply({"score": 30, "feedback": "Solid"})
        client.post("/api/assignment-submissions", headers=student_headers, json={
            "assignmentId": assignment_id, "content": "Report",
        })

        response = client.post(f"/api/assignments/{assignment_id}/ai-grade-all", headers=prof_headers)

        assert response.json() == {"gradedCount": 1, "failedCount": 0, "failed": []}

    @patch("eduassess.ai.features.generate_with_provider")
    def test_detect_ai(self, mock_generate, client, prof_headers, student_headers, assignment_id):
        mock_generate.return_value = ai_reply({"aiProbability": 12, "reasoning": "Personal voice"})
        submission = client.post("/api/assignment-submissions", headers=student_headers, json={
            "assignmentId": assignment_id, "content": "I measured the cells myself.",
        }).json()

        response = client.post(f"/api/assignment-submissions/{submission['id']}/detect-ai", headers=prof_headers)

        assert response.json()["aiProbability"] == 12
        assert response.json()["submission"]["aiContentScore"] == 12


class TestLectures:
    @pytest.fixture
    def lecture_id(self, client, prof_headers, course_id):
        response = client.post("/api/lectures", headers=prof_headers, json={
            "courseId": course_id, "title": "Cell Structure", "description": "Membranes and organelles",
        })
        return response.json()["id"]

    def test_enrolled_student_can_read(self, client, student_headers, course_id, lecture_id):
        lectures = client.get(f"/api/lectures?courseId={course_id}", headers=student_headers).json()

        assert [l["id"] for l in lectures] == [lecture_id]

    @patch("eduassess.ai.features.generate_with_provider")
    def test_generate_summary(self, mock_generate, client, prof_headers, lecture_id):
        mock_generate.return_value = ai_reply({"summary": "Cells have parts.", "keyPoints": ["Membrane", "Nucleus"]})

        response = client.post(f"/api/lectures/{lecture_id}/generate-summary", headers=prof_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["summary"] == "Cells have parts."
        assert response.json()["keyPoints"] == ["Membrane", "Nucleus"]

    @patch("eduassess.ai.features.generate_with_provider")
    def test_summary_failure(self, mock_generate, client, prof_headers, lecture_id):
        mock_generate.side_effect = AiProviderError("gemini API error 503")

        response = client.post(f"/api/lectures/{lecture_id}/generate-summary", headers=prof_headers)

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["detail"].startswith("Failed to generate summary")


class TestProctoring:
    def test_violation_threshold(self, client, prof_headers, student_headers, published_quiz):
        client.patch(f"/api/quizzes/{published_quiz['id']}", headers=prof_headers, json={"violationThreshold": 2})
        submission_id = client.post(f"/api/quiz/{published_quiz['id']}/start", headers=student_headers).json()["submissionId"]

        first = client.post("/api/proctoring/violation", headers=student_headers, json={
            "submissionId": submission_id, "type": "tab_switch",
        }).json()
        second = client.post("/api/proctoring/violation", headers=student_headers, json={
            "submissionId": submission_id, "type": "copy_paste", "reviewed": True,
        }).json()

        assert (first["violationCount"], first["thresholdExceeded"]) == (1, False)
        assert (second["violationCount"], second["thresholdExceeded"]) == (2, True)
        assert second["violation"]["reviewed"] is False

        reviewed = client.patch(f"/api/proctoring/violations/{second['violation']['id']}", headers=prof_headers, json={
            "reviewNote": "Pasted the question into notes",
        })
        assert reviewed.json()["reviewed"] is True

    @patch("eduassess.ai.features.generate_with_provider")
    def test_frame_analysis_failure_reports_nothing(self, mock_generate, client, student_headers):
        mock_generate.side_effect = AiProviderError("No API key configured")

        response = client.post("/api/proctoring/analyze-frame", headers=student_headers, json={"imageData": "aGVsbG8="})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"violations": []}


class TestDashboard:
    def test_stats(self, client, prof_headers, course_id, published_quiz):
        stats = client.get("/api/dashboard/stats", headers=prof_headers).json()

        assert stats["totalCourses"] == 1
        assert stats["totalQuizzes"] == 1
        assert stats["totalStudents"] == 1

    def test_students_see_only_their_own_profile(self, client, api_storage, student, student_headers, auth_headers):
        other = make_user(api_storage, "student_kim")

        assert client.get(f"/api/students/{student.id}", headers=student_headers).status_code == status.HTTP_200_OK
        assert client.get(f"/api/students/{other.id}", headers=student_headers).status_code == status.HTTP_403_FORBIDDEN

    def test_delete_user_requires_admin(self, client, prof_headers, admin, auth_headers, student):
        assert client.delete(f"/api/users/{student.id}", headers=prof_headers).status_code == status.HTTP_403_FORBIDDEN
        assert client.delete(f"/api/users/{admin.id}", headers=auth_headers(admin)).status_code == status.HTTP_403_FORBIDDEN

        response = client.delete(f"/api/users/{student.id}", headers=auth_headers(admin))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        users = client.get("/api/users?role=student", headers=prof_headers).json()
        assert users == []


class TestAiSettings:
    def test_keys_are_never_echoed(self, client, prof_headers):
        response = client.put("/api/settings/ai-providers", headers=prof_headers, json={
            "activeAiProvider": "openai", "openaiApiKey": "sk-secret",
        })

        assert response.status_code == status.HTTP_200_OK
        assert "sk-secret" not in response.text
        data = response.json()
        assert data["activeProvider"] == "openai"
        configured = {p["id"]: p["configured"] for p in data["providers"]}
        assert configured["openai"] is True
        assert configured["anthropic"] is False

    def test_empty_string_clears_key(self, client, api_storage, prof, prof_headers):
        client.put("/api/settings/ai-providers", headers=prof_headers, json={"openaiApiKey": "sk-secret"})
        client.put("/api/settings/ai-providers", headers=prof_headers, json={"openaiApiKey": ""})

        assert api_storage.get_user(prof.id).openai_api_key is None

    @patch("eduassess.ai.features.generate_with_provider")
    def test_generate_and_save_questions(self, mock_generate, client, api_storage, prof_headers, course_id):
        mock_generate.return_value = ai_reply({"questions": [
            {"type": "mcq", "text": "Largest organelle?", "options": ["Nucleus", "Ribosome"], "correctAnswer": "Nucleus"},
        ]})

        response = client.post("/api/ai/generate-questions", headers=prof_headers, json={
            "content": "The nucleus is the largest organelle.", "courseId": course_id, "save": True,
        })

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["questions"][0]["aiGenerated"] is True
        assert len(api_storage.get_questions(course_id=course_id)) == 1

    def test_generate_without_content(self, client, prof_headers):
        response = client.post("/api/ai/generate-questions", headers=prof_headers, json={"numQuestions": 3})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestChatEndpoints:
    @patch("eduassess.ai.features.generate_with_provider")
    def test_command_and_history(self, mock_generate, client, prof_headers, course_id):
        mock_generate.return_value = ai_reply({"intent": "list_courses", "parameters": {}, "message": "Here you go."})

        response = client.post("/api/chat/command", headers=prof_headers, json={"message": "list my courses"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["aiResponse"] == "Here you go."
        history = client.get("/api/chat/history", headers=prof_headers).json()
        assert [c["command"] for c in history] == ["list my courses"]

    @patch("eduassess.ai.features.generate_with_provider")
    def test_provider_failure(self, mock_generate, client, prof_headers):
        mock_generate.side_effect = AiProviderError("No API key configured")

        response = client.post("/api/chat/command", headers=prof_headers, json={"message": "hi"})

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.json()["detail"].startswith("AI assistant is unavailable")

    def test_students_cannot_use_assistant(self, client, student_headers):
        response = client.post("/api/chat/command", headers=student_headers, json={"message": "hi"})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @patch("eduassess.ai.features.generate_with_provider")
    def test_malformed_parameters_are_reported(self, mock_generate, client, prof_headers):
        mock_generate.return_value = ai_reply({"intent": "create_quiz", "parameters": {"title": ["not", "a", "title"]}})
        client.post("/api/courses", headers=prof_headers, json={"name": "Bio", "code": "B1", "semester": "Fall"})

        response = client.post("/api/chat/command", headers=prof_headers, json={"message": "make a quiz"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["result"]["success"] is False
        assert response.json()["command"]["status"] == "failed"
