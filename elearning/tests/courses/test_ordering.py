from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from elearning.exceptions import ValidationError
from elearning.models import Lesson, Unit
from elearning.services import OrderingService

from ..factories import make_admin, make_course, make_lesson, make_unit

units = OrderingService(Unit, "course", "unit", "course")


def orders(course):
    return list(course.units.order_by("order").values_list("title", "order"))


class OrderingServiceTests(TestCase):
    def setUp(self):
        self.course = make_course()
        for order in (1, 2, 3):
            make_unit(self.course, order, title=f"U{order}")

    def test_insert_without_order_appends(self):
        unit = units.insert(self.course, title="New")
        self.assertEqual(unit.order, 4)

    def test_insert_at_occupied_position_shifts_following(self):
        units.insert(self.course, order=2, title="New")
        self.assertEqual(
            orders(self.course), [("U1", 1), ("New", 2), ("U2", 3), ("U3", 4)]
        )

    def test_insert_at_free_position_keeps_siblings(self):
        units.insert(self.course, order=7, title="New")
        self.assertEqual(
            orders(self.course), [("U1", 1), ("U2", 2), ("U3", 3), ("New", 7)]
        )

    def test_move_up(self):
        unit = self.course.units.get(title="U3")
        units.move(unit, 1)
        self.assertEqual(orders(self.course), [("U3", 1), ("U1", 2), ("U2", 3)])

    def test_move_down(self):
        unit = self.course.units.get(title="U1")
        units.move(unit, 3)
        self.assertEqual(orders(self.course), [("U2", 1), ("U3", 2), ("U1", 3)])

    def test_delete_leaves_gap(self):
        self.course.units.get(title="U2").delete()
        self.assertEqual(orders(self.course), [("U1", 1), ("U3", 3)])

    def test_reorder_swaps_positions(self):
        first = self.course.units.get(title="U1")
        last = self.course.units.get(title="U3")
        units.reorder(self.course, [{"id": first.id, "order": 3}, {"id": last.id, "order": 1}])
        self.assertEqual(orders(self.course), [("U3", 1), ("U2", 2), ("U1", 3)])

    def test_reorder_rejects_collision_with_untouched_sibling(self):
        first = self.course.units.get(title="U1")
        with self.assertRaises(ValidationError):
            units.reorder(self.course, [{"id": first.id, "order": 2}])
        self.assertEqual(orders(self.course), [("U1", 1), ("U2", 2), ("U3", 3)])

    def test_reorder_rejects_foreign_ids(self):
        other = make_unit(make_course(title="Other"), 1)
        first = self.course.units.get(title="U1")
        with self.assertRaises(ValidationError) as ctx:
            units.reorder(
                self.course, [{"id": first.id, "order": 5}, {"id": other.id, "order": 6}]
            )
        self.assertEqual(ctx.exception.message, "Some units do not belong to this course")
        self.assertEqual(orders(self.course), [("U1", 1), ("U2", 2), ("U3", 3)])

    def test_reorder_rejects_duplicate_targets(self):
        first = self.course.units.get(title="U1")
        second = self.course.units.get(title="U2")
        with self.assertRaises(ValidationError):
            units.reorder(
                self.course, [{"id": first.id, "order": 9}, {"id": second.id, "order": 9}]
            )

    def test_reorder_rejects_empty_list(self):
        with self.assertRaises(ValidationError):
            units.reorder(self.course, [])

    def test_reorder_subset_to_position_zero(self):
        last = self.course.units.get(title="U3")
        units.reorder(self.course, [{"id": last.id, "order": 0}])
        self.assertEqual(orders(self.course), [("U3", 0), ("U1", 1), ("U2", 2)])

    def test_reorder_rejects_negative_order(self):
        first = self.course.units.get(title="U1")
        with self.assertRaises(ValidationError):
            units.reorder(self.course, [{"id": first.id, "order": -1}])
        self.assertEqual(orders(self.course), [("U1", 1), ("U2", 2), ("U3", 3)])


class UnitOrderingApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_admin())
        self.course = make_course()
        for order in (1, 2, 3):
            make_unit(self.course, order, title=f"U{order}")
        self.base = f"/api/elearning/courses/{self.course.id}/units/"

    def test_create_unit_at_position(self):
        response = self.client.post(self.base, {"title": "Inserted", "order": 1}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()["order"], 1)
        self.assertEqual(
            orders(self.course), [("Inserted", 1), ("U1", 2), ("U2", 3), ("U3", 4)]
        )

    def test_create_unit_requires_three_characters(self):
        response = self.client.post(self.base, {"title": "ab"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Title must be at least 3 characters", response.json()["error"])

    def test_update_moves_unit(self):
        unit = self.course.units.get(title="U1")
        response = self.client.put(
            f"{self.base}{unit.id}/", {"title": "Unit one", "order": 3}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(orders(self.course), [("U2", 1), ("U3", 2), ("Unit one", 3)])

    def test_delete_unit(self):
        unit = self.course.units.get(title="U2")
        response = self.client.delete(f"{self.base}{unit.id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["message"], "Unit deleted successfully")
        self.assertFalse(Unit.objects.filter(pk=unit.id).exists())

    def test_reorder_endpoint(self):
        ids = {title: pk for pk, title in self.course.units.values_list("id", "title")}
        payload = {
            "unitOrder": [
                {"id": ids["U1"], "order": 2},
                {"id": ids["U2"], "order": 3},
                {"id": ids["U3"], "order": 1},
            ]
        }
        response = self.client.put(f"{self.base}reorder/", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([u["title"] for u in response.json()], ["U3", "U1", "U2"])

    def test_reorder_endpoint_rejects_missing_list(self):
        response = self.client.put(f"{self.base}reorder/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Invalid unit order data")

    def test_unknown_course(self):
        response = self.client.get("/api/elearning/courses/999999/units/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "Course not found")


class LessonOrderingApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(make_admin())
        self.course = make_course()
        self.unit = make_unit(self.course, 1)
        self.first = make_lesson(self.unit, 1, title="Intro")
        self.second = make_lesson(self.unit, 2, title="Deep dive")
        self.base = f"/api/elearning/courses/{self.course.id}/units/{self.unit.id}/lessons/"

    def test_create_lesson_rejects_invalid_video_url(self):
        response = self.client.post(
            self.base, {"title": "Video lesson", "videoUrl": "not a url"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Invalid video URL", response.json()["error"])

    def test_create_lesson_appends(self):
        response = self.client.post(
            self.base,
            {"title": "Summary", "videoUrl": "https://example.com/v.mp4"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()["order"], 3)

    def test_reorder_lessons(self):
        payload = {
            "lessonOrder": [
                {"id": self.first.id, "order": 2},
                {"id": self.second.id, "order": 1},
            ]
        }
        response = self.client.put(f"{self.base}reorder/", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([lesson["title"] for lesson in response.json()], ["Deep dive", "Intro"])

    def test_publish_lesson_under_other_unit_is_not_found(self):
        other_unit = make_unit(self.course, 2)
        response = self.client.patch(
            f"/api/elearning/courses/{self.course.id}/units/{other_unit.id}"
            f"/lessons/{self.first.id}/publish/",
            {"isPublished": True},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "Lesson not found")

    def test_publish_lesson(self):
        response = self.client.patch(
            f"{self.base}{self.first.id}/publish/", {"isPublished": True}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.first.refresh_from_db()
        self.assertTrue(self.first.is_published)

    def test_only_one_quiz_per_lesson(self):
        url = f"{self.base}{self.first.id}/quiz/"
        payload = {"title": "Check", "questions": [{"question": "?"}]}
        self.assertEqual(
            self.client.post(url, payload, format="json").status_code,
            status.HTTP_201_CREATED,
        )
        response = self.client.post(url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Quiz already exists for this lesson")
        self.assertEqual(Lesson.objects.get(pk=self.first.id).quizzes.count(), 1)
