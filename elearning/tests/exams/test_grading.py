from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from elearning.models import ActivityLog, ExamAttempt, ProgressRecord

from ..factories import enroll, make_admin, make_course, make_exam, make_unit, make_user

LONG_ANSWER = "The derivative describes the rate of change."

MIXED_QUESTIONS = {
    "multipleChoice": {
        "partA": [
            {"question": "Q0", "correctAnswer": "A", "points": 1},
            {"question": "Q1", "correctAnswer": "A", "points": 1},
        ]
    },
    "freeResponse": {"partA": [{"question": "Explain", "totalPoints": 6}]},
}


class ExamGradingTests(TestCase):
    def setUp(self):
        self.student = make_user()
        self.student_client = APIClient()
        self.student_client.force_authenticate(self.student)

        self.admin = make_admin()
        self.client = APIClient()
        self.client.force_authenticate(self.admin)

        self.course = make_course()
        self.unit = make_unit(self.course, 1)
        self.exam = make_exam(self.unit, questions=MIXED_QUESTIONS, passing_score=80)
        self.enrollment = enroll(self.student, self.course)

    def submit_exam(self, exam=None, answers=None):
        exam = exam or self.exam
        base = f"/api/elearning/student/exams/{exam.id}/"
        attempt_id = self.student_client.post(f"{base}attempt/").json()["attemptId"]
        response = self.student_client.post(
            f"{base}submit/",
            {
                "attemptId": attempt_id,
                "answers": answers or {"0-0": "A", "0-1": "A", "2-0": {"a": LONG_ANSWER}},
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return attempt_id

    def grade(self, attempt_id, key="2-0", score=6, **extra):
        return self.client.post(
            f"/api/elearning/grading/attempts/{attempt_id}/score/",
            {"questionKey": key, "score": score, **extra},
            format="json",
        )

    def complete(self, attempt_id, **data):
        return self.client.post(
            f"/api/elearning/grading/attempts/{attempt_id}/complete/", data, format="json"
        )

    # --- Abgabe und Warteschlange ---

    def test_submit_queues_free_response_attempt(self):
        attempt_id = self.submit_exam()
        attempt = ExamAttempt.objects.get(pk=attempt_id)
        self.assertEqual(attempt.grading_status, ExamAttempt.GradingStatus.PENDING)
        # 2 MC-Punkte + 4 vorläufige FR-Punkte von 8
        self.assertEqual(attempt.score, 75)
        self.assertFalse(attempt.passed)

        response = self.client.get("/api/elearning/grading/pending/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()
        self.assertEqual(data["total"], 1)
        self.assertEqual(data["attempts"][0]["attemptId"], attempt_id)
        self.assertEqual(data["attempts"][0]["provisionalScore"], 75)

    def test_multiple_choice_only_attempt_skips_queue(self):
        unit = make_unit(self.course, 2)
        exam = make_exam(unit)
        attempt_id = self.submit_exam(exam, {"0-0": "A", "0-1": "A"})

        attempt = ExamAttempt.objects.get(pk=attempt_id)
        self.assertEqual(attempt.grading_status, ExamAttempt.GradingStatus.NOT_REQUIRED)
        self.assertEqual(self.client.get("/api/elearning/grading/pending/").json()["total"], 0)

    # --- Punkte vergeben ---

    def test_grade_question_recomputes_result(self):
        attempt_id = self.submit_exam()
        response = self.grade(attempt_id, feedback="Vollständig")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        result = response.json()["attempt"]
        self.assertEqual(result["score"], 100)
        self.assertEqual(result["pointsEarned"], 8)
        self.assertTrue(result["passed"])
        self.assertEqual(result["gradingStatus"], "IN_PROGRESS")
        self.assertEqual(result["pendingQuestions"], 0)

        attempt = ExamAttempt.objects.get(pk=attempt_id)
        self.assertEqual(attempt.manual_scores["2-0"]["score"], 6)
        self.assertEqual(attempt.graded_by, self.admin)
        self.assertTrue(
            ActivityLog.objects.filter(action="EXAM_GRADED", entity_id=str(attempt_id)).exists()
        )

    def test_grade_can_lower_score(self):
        attempt_id = self.submit_exam()
        result = self.grade(attempt_id, score=0).json()["attempt"]
        self.assertEqual(result["score"], 25)
        self.assertFalse(result["passed"])

    def test_score_outside_question_points(self):
        attempt_id = self.submit_exam()
        for score in (7, -1):
            response = self.grade(attempt_id, score=score)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.json()["error"], "Score must be between 0 and 6 points")
        self.assertEqual(ExamAttempt.objects.get(pk=attempt_id).manual_scores, {})

    def test_unknown_question_key(self):
        attempt_id = self.submit_exam()
        response = self.grade(attempt_id, key="3-5")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "Question not found in this exam")

    def test_malformed_question_key(self):
        attempt_id = self.submit_exam()
        response = self.grade(attempt_id, key="free-response")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_running_attempt_cannot_be_graded(self):
        attempt = ExamAttempt.objects.create(exam=self.exam, user=self.student)
        response = self.grade(attempt.id)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Exam attempt has not been submitted yet")

    def test_unknown_attempt(self):
        response = self.grade(987654)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "Exam attempt not found")

    # --- Bewertungsstand ---

    def test_detail_reports_progress(self):
        attempt_id = self.submit_exam()
        url = f"/api/elearning/grading/attempts/{attempt_id}/"

        data = self.client.get(url).json()
        self.assertEqual(data["totalQuestions"], 3)
        self.assertEqual(data["freeResponseQuestions"], 1)
        self.assertEqual(data["gradingProgress"], 0)
        self.assertFalse(data["isComplete"])
        self.assertEqual(
            [q["questionKey"] for q in data["questions"]], ["0-0", "0-1", "2-0"]
        )

        self.grade(attempt_id)
        data = self.client.get(url).json()
        self.assertEqual(data["gradedFreeResponseQuestions"], 1)
        self.assertEqual(data["gradingProgress"], 100)
        self.assertTrue(data["isComplete"])

    # --- Abschließen ---

    def test_complete_requires_all_questions_graded(self):
        attempt_id = self.submit_exam()
        response = self.complete(attempt_id)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.json()["error"],
            "Cannot complete grading: 1 free response question(s) still pending",
        )

    def test_complete_passing_attempt_completes_unit(self):
        attempt_id = self.submit_exam()
        record = ProgressRecord.objects.get(enrollment=self.enrollment, unit=self.unit)
        self.assertFalse(record.completed)

        self.grade(attempt_id)
        response = self.complete(attempt_id, feedback="Sehr gut", needsReview=True)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["attempt"]["gradingStatus"], "COMPLETED")

        attempt = ExamAttempt.objects.get(pk=attempt_id)
        self.assertIsNotNone(attempt.graded_at)
        self.assertEqual(attempt.instructor_feedback, "Sehr gut")
        self.assertTrue(attempt.needs_review)

        record.refresh_from_db()
        self.assertTrue(record.completed)
        self.assertTrue(
            ActivityLog.objects.filter(
                action="EXAM_GRADING_COMPLETED", entity_id=str(attempt_id)
            ).exists()
        )
        self.assertEqual(self.client.get("/api/elearning/grading/pending/").json()["total"], 0)

    def test_completed_grading_is_final(self):
        attempt_id = self.submit_exam()
        self.grade(attempt_id)
        self.complete(attempt_id)

        response = self.grade(attempt_id, score=2)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Grading has already been completed")
        self.assertEqual(ExamAttempt.objects.get(pk=attempt_id).score, 100)

    # --- Zugriff ---

    def test_students_cannot_grade(self):
        attempt_id = self.submit_exam()
        responses = [
            self.student_client.get("/api/elearning/grading/pending/"),
            self.student_client.get(f"/api/elearning/grading/attempts/{attempt_id}/"),
            self.student_client.post(
                f"/api/elearning/grading/attempts/{attempt_id}/score/",
                {"questionKey": "2-0", "score": 6},
                format="json",
            ),
        ]
        for response in responses:
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
