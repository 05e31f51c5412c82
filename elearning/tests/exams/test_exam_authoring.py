from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from elearning.models import ExamAttempt, UnitExam

from ..factories import make_admin, make_course, make_exam, make_unit, make_user, mc_questions


class UnitExamAuthoringTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_admin())
        self.course = make_course()
        self.unit = make_unit(self.course, 1)
        self.base = f"/api/elearning/courses/{self.course.id}/units/{self.unit.id}/exams/"

    def test_create_exam_clamps_values(self):
        response = self.client.post(
            self.base,
            {
                "title": "Cells Assessment",
                "questions": mc_questions(3),
                "passingScore": 150,
                "maxAttempts": 25,
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.json()
        self.assertEqual(data["passingScore"], 100)
        self.assertEqual(data["maxAttempts"], 10)
        self.assertEqual(data["totalPoints"], 3)
        self.assertEqual(data["order"], 1)

    def test_create_exam_max_attempts_lower_bound(self):
        response = self.client.post(
            self.base,
            {"title": "Cells Assessment", "questions": mc_questions(), "maxAttempts": 0},
            format="json",
        )
        self.assertEqual(response.json()["maxAttempts"], 1)

    def test_exam_needs_questions(self):
        response = self.client.post(
            self.base,
            {"title": "Empty", "questions": {"multipleChoice": {"partA": []}}},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("At least one question is required", response.json()["error"])

    def test_questions_must_be_object(self):
        response = self.client.post(
            self.base, {"title": "Broken", "questions": "abc"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Questions must be a valid object", response.json()["error"])

    def test_availability_window_must_be_ordered(self):
        now = timezone.now()
        response = self.client.post(
            self.base,
            {
                "title": "Window",
                "questions": mc_questions(),
                "availableFrom": (now + timedelta(days=2)).isoformat(),
                "availableUntil": (now + timedelta(days=1)).isoformat(),
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.json()["error"], "Available from date must be before available until date"
        )

    def test_questions_frozen_after_completed_attempt(self):
        exam = make_exam(self.unit)
        ExamAttempt.objects.create(
            exam=exam,
            user=make_user(),
            completed_at=timezone.now(),
            status=ExamAttempt.Status.COMPLETED,
            score=100,
            passed=True,
        )
        url = f"{self.base}{exam.id}/"

        response = self.client.put(
            url,
            {"title": exam.title, "questions": exam.questions, "passingScore": 50},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.put(
            url,
            {"title": "Renamed exam", "questions": exam.questions},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["stats"]["totalAttempts"], 1)

    def test_delete_exam(self):
        exam = make_exam(self.unit)
        response = self.client.delete(f"{self.base}{exam.id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(UnitExam.objects.filter(pk=exam.id).exists())

    def test_exam_of_other_unit_not_found(self):
        other = make_exam(make_unit(self.course, 2))
        response = self.client.get(f"{self.base}{other.id}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "Exam not found")


class ExamStructureValidationTests(TestCase):
    """Werte, die später Speichern und Abgabe eines Versuchs verhindern würden."""

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_admin())
        self.course = make_course()
        self.unit = make_unit(self.course, 1)
        self.base = f"/api/elearning/courses/{self.course.id}/units/{self.unit.id}/exams/"

    def create(self, **fields):
        data = {"title": "Cells Assessment", "questions": mc_questions()}
        data.update(fields)
        return self.client.post(self.base, data, format="json")

    def assertRejected(self, response, message):
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn(message, response.json()["error"])
        self.assertFalse(UnitExam.objects.exists())

    def test_structure_group_must_be_object(self):
        response = self.create(structure={"multipleChoice": [{"timeLimit": 45}]})
        self.assertRejected(response, "Invalid exam structure")

    def test_structure_part_must_be_object(self):
        response = self.create(structure={"freeResponse": {"partA": 45}})
        self.assertRejected(response, "Invalid exam structure")

    def test_structure_must_be_object(self):
        response = self.create(structure="45 minutes")
        self.assertRejected(response, "Structure must be a valid object")

    def test_section_time_limit_must_be_integer(self):
        response = self.create(structure={"multipleChoice": {"partA": {"timeLimit": "45"}}})
        self.assertRejected(response, "Section timeLimit must be a positive integer")

    def test_section_time_limit_must_be_positive(self):
        response = self.create(structure={"multipleChoice": {"partA": {"timeLimit": 0}}})
        self.assertRejected(response, "Section timeLimit must be a positive integer")

    def test_valid_structure(self):
        response = self.create(
            structure={
                "multipleChoice": {"partA": {"timeLimit": 45}, "partB": None},
                "freeResponse": {"partA": {"timeLimit": 30}},
            }
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_multiple_choice_points_must_be_integer(self):
        questions = mc_questions()
        questions["multipleChoice"]["partA"][0]["points"] = "2"
        self.assertRejected(
            self.create(questions=questions), "Question points must be a positive integer"
        )

    def test_free_response_points_must_be_integer(self):
        questions = {"freeResponse": {"partA": [{"question": "Explain", "totalPoints": "6"}]}}
        self.assertRejected(
            self.create(questions=questions), "Question totalPoints must be a positive integer"
        )

    def test_free_response_sub_parts_must_be_list(self):
        questions = {
            "freeResponse": {"partA": [{"question": "Explain", "parts": [{"subParts": 3}]}]}
        }
        self.assertRejected(
            self.create(questions=questions), "Free response subParts must be a list"
        )

    def test_free_response_parts_must_be_list(self):
        questions = {"freeResponse": {"partA": [{"question": "Explain", "parts": "a, b"}]}}
        self.assertRejected(
            self.create(questions=questions), "Free response parts must be a list of objects"
        )

    def test_invalid_structure_on_update(self):
        exam = make_exam(self.unit)
        response = self.client.patch(
            f"{self.base}{exam.id}/",
            {"structure": {"multipleChoice": {"partA": {"timeLimit": "45"}}}},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        exam.refresh_from_db()
        self.assertIsNone(exam.structure)
