from datetime import timedelta

from django.db import IntegrityError, transaction
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from elearning.models import ActivityLog, Enrollment, ExamAttempt, ProgressRecord

from ..factories import enroll, make_course, make_exam, make_unit, make_user


class ExamAttemptTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.client = APIClient()
        self.client.force_authenticate(self.user)

        self.course = make_course()
        self.unit = make_unit(self.course, 1)
        self.exam = make_exam(self.unit, time_limit=30)
        self.enrollment = enroll(self.user, self.course)
        self.base = f"/api/elearning/student/exams/{self.exam.id}/"

    def start(self):
        return self.client.post(f"{self.base}attempt/", format="json")

    def submit(self, attempt_id, answers):
        return self.client.post(
            f"{self.base}submit/", {"attemptId": attempt_id, "answers": answers}, format="json"
        )

    # --- Starten ---

    def test_start_attempt(self):
        response = self.start()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.json()
        self.assertTrue(data["success"])
        self.assertEqual(data["attemptNumber"], 1)

        attempt = ExamAttempt.objects.get(pk=data["attemptId"])
        self.assertIsNone(attempt.completed_at)
        self.assertEqual(attempt.answers, {})
        self.assertTrue(
            ActivityLog.objects.filter(action="EXAM_STARTED", entity_id=str(attempt.id)).exists()
        )

    def test_second_start_reports_running_attempt(self):
        first = self.start().json()["attemptId"]
        response = self.start()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "You already have an attempt in progress")
        self.assertEqual(response.json()["attemptId"], first)
        self.assertEqual(ExamAttempt.objects.filter(exam=self.exam, user=self.user).count(), 1)

    def test_database_allows_single_running_attempt(self):
        ExamAttempt.objects.create(exam=self.exam, user=self.user)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                ExamAttempt.objects.create(exam=self.exam, user=self.user)

    def test_start_requires_enrollment(self):
        self.enrollment.delete()
        response = self.start()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()["error"], "You are not enrolled in this course")

    def test_start_requires_published_exam(self):
        self.exam.is_published = False
        self.exam.save()
        response = self.start()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()["error"], "Exam is not published")

    def test_start_before_window(self):
        self.exam.available_from = timezone.now() + timedelta(days=1)
        self.exam.save()
        response = self.start()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()["error"], "Exam is not yet available")

    def test_start_after_deadline(self):
        self.exam.available_until = timezone.now() - timedelta(minutes=1)
        self.exam.save()
        response = self.start()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()["error"], "Exam deadline has passed")

    def test_unknown_exam(self):
        response = self.client.post("/api/elearning/student/exams/987654/attempt/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "Exam not found")

    def test_max_attempts(self):
        self.exam.max_attempts = 1
        self.exam.save()
        attempt_id = self.start().json()["attemptId"]
        self.submit(attempt_id, {"0-0": "A", "0-1": "A"})

        response = self.start()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()["error"], "Maximum attempts reached")

    def test_max_attempts_allows_retake_until_limit(self):
        self.exam.max_attempts = 2
        self.exam.save()

        first = self.start()
        self.assertEqual(first.json()["attemptNumber"], 1)
        self.submit(first.json()["attemptId"], {"0-0": "B", "0-1": "B"})

        second = self.start()
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.json()["attemptNumber"], 2)
        self.submit(second.json()["attemptId"], {"0-0": "A", "0-1": "B"})

        response = self.start()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()["error"], "Maximum attempts reached")
        self.assertEqual(
            ExamAttempt.objects.filter(exam=self.exam, user=self.user).count(), 2
        )

    def test_anonymous_is_unauthorized(self):
        response = APIClient().post(f"{self.base}attempt/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    # --- Zwischenstand ---

    def test_save_and_resume(self):
        attempt_id = self.start().json()["attemptId"]
        response = self.client.post(
            f"{self.base}save/",
            {
                "attemptId": attempt_id,
                "answers": {"0-0": "A"},
                "currentSection": 0,
                "currentQuestion": 1,
                "timeRemaining": 1500,
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["attempt"]["currentQuestion"], 1)

        response = self.client.get(f"{self.base}save/", {"attemptId": attempt_id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        saved = response.json()["attempt"]
        self.assertEqual(saved["answers"], {"0-0": "A"})
        self.assertEqual(saved["timeRemaining"], 1500)
        self.assertIsNotNone(saved["lastSavedAt"])

    def test_save_rejects_invalid_answers(self):
        attempt_id = self.start().json()["attemptId"]
        response = self.client.post(
            f"{self.base}save/", {"attemptId": attempt_id, "answers": ["A"]}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Invalid answers format")

    def test_save_after_time_limit(self):
        attempt = ExamAttempt.objects.create(
            exam=self.exam, user=self.user, started_at=timezone.now() - timedelta(hours=2)
        )
        response = self.client.post(
            f"{self.base}save/", {"attemptId": attempt.id, "answers": {}}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Time limit exceeded")
        self.assertTrue(response.json()["timeExpired"])

    def test_save_ignores_malformed_stored_structure(self):
        # Über den Django-Admin gepflegte Struktur ohne Validierung
        self.exam.structure = {
            "multipleChoice": {"partA": {"timeLimit": "45"}},
            "freeResponse": [{"timeLimit": 30}],
        }
        self.exam.save()
        attempt_id = self.start().json()["attemptId"]

        response = self.client.post(
            f"{self.base}save/", {"attemptId": attempt_id, "answers": {"0-0": "A"}}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_save_foreign_attempt_is_not_found(self):
        other = ExamAttempt.objects.create(exam=self.exam, user=make_user("other"))
        response = self.client.post(
            f"{self.base}save/", {"attemptId": other.id, "answers": {}}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "Attempt not found or already completed")

    # --- Abgabe ---

    def test_submit_requires_attempt_and_answers(self):
        response = self.client.post(f"{self.base}submit/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Attempt ID and answers are required")

    def test_submit_passing_attempt_completes_unit(self):
        attempt_id = self.start().json()["attemptId"]
        response = self.submit(attempt_id, {"0-0": "A", "0-1": "A"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        result = response.json()["attempt"]
        self.assertEqual(result["score"], 100)
        self.assertTrue(result["passed"])
        self.assertEqual(result["pointsEarned"], 2)

        record = ProgressRecord.objects.get(enrollment=self.enrollment, unit=self.unit)
        self.assertTrue(record.started)
        self.assertTrue(record.completed)

    def test_submit_failing_attempt_only_starts_unit(self):
        attempt_id = self.start().json()["attemptId"]
        response = self.submit(attempt_id, {"0-0": "A", "0-1": "C"})
        result = response.json()["attempt"]
        self.assertEqual(result["score"], 50)
        self.assertFalse(result["passed"])

        record = ProgressRecord.objects.get(enrollment=self.enrollment, unit=self.unit)
        self.assertTrue(record.started)
        self.assertFalse(record.completed)

    def test_submit_twice(self):
        attempt_id = self.start().json()["attemptId"]
        self.submit(attempt_id, {"0-0": "A"})
        response = self.submit(attempt_id, {"0-0": "A"})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(
            response.json()["error"], "Attempt not found, already completed, or access denied"
        )

    def test_submit_after_time_limit_is_accepted(self):
        attempt = ExamAttempt.objects.create(
            exam=self.exam, user=self.user, started_at=timezone.now() - timedelta(hours=2)
        )
        response = self.submit(attempt.id, {"0-0": "A", "0-1": "A"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(ExamAttempt.objects.get(pk=attempt.id).completed_at)

    def test_submit_after_suspension(self):
        attempt_id = self.start().json()["attemptId"]
        self.enrollment.status = Enrollment.Status.SUSPENDED
        self.enrollment.save()

        response = self.submit(attempt_id, {"0-0": "A"})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()["error"], "You are no longer enrolled in this course")
        self.assertIsNone(ExamAttempt.objects.get(pk=attempt_id).completed_at)

    def test_list_attempts(self):
        attempt_id = self.start().json()["attemptId"]
        self.submit(attempt_id, {"0-0": "A", "0-1": "A"})
        running = self.start().json()["attemptId"]

        response = self.client.get(f"{self.base}attempt/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.json()["summary"]
        self.assertEqual(summary["totalAttempts"], 2)
        self.assertEqual(summary["completedAttempts"], 1)
        self.assertEqual(summary["inProgressAttemptId"], running)
        self.assertEqual(summary["bestScore"], 100)
