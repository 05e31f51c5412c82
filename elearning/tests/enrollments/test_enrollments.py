from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from elearning.models import ActivityLog, Enrollment

from ..factories import enroll, make_course, make_user

ENROLLMENTS_URL = "/api/elearning/enrollments/"


class EnrollmentTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def test_enroll_in_free_course(self):
        course = make_course()
        response = self.client.post(ENROLLMENTS_URL, {"courseId": course.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        enrollment = Enrollment.objects.get(user=self.user, course=course)
        self.assertEqual(enrollment.payment_status, Enrollment.PaymentStatus.PAID)
        self.assertEqual(enrollment.status, Enrollment.Status.ACTIVE)
        self.assertEqual(response.json()["enrollment"]["courseId"], course.id)
        self.assertTrue(ActivityLog.objects.filter(action="COURSE_ENROLLED").exists())

    def test_unpublished_course(self):
        course = make_course(is_published=False)
        response = self.client.post(ENROLLMENTS_URL, {"courseId": course.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Course is not available for enrollment")

    def test_already_enrolled(self):
        course = make_course()
        enroll(self.user, course)
        response = self.client.post(ENROLLMENTS_URL, {"courseId": course.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Already enrolled in this course")
        self.assertEqual(Enrollment.objects.filter(user=self.user).count(), 1)

    def test_paid_course_requires_payment(self):
        course = make_course(is_free=False, price="29.00")
        response = self.client.post(ENROLLMENTS_URL, {"courseId": course.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        data = response.json()
        self.assertEqual(data["error"], "Paid courses require payment processing")
        self.assertTrue(data["requiresPayment"])
        self.assertEqual(data["courseId"], course.id)
        self.assertFalse(Enrollment.objects.exists())

    def test_unknown_course(self):
        response = self.client.post(ENROLLMENTS_URL, {"courseId": 55555}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "Course not found")

    def test_course_id_required(self):
        response = self.client.post(ENROLLMENTS_URL, {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("courseId is required", response.json()["error"])

    def test_list_own_enrollments(self):
        enroll(self.user, make_course(title="Mine"))
        enroll(make_user("other"), make_course(title="Theirs"))

        response = self.client.get(ENROLLMENTS_URL)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([e["courseTitle"] for e in response.json()], ["Mine"])

    def test_anonymous(self):
        response = APIClient().post(ENROLLMENTS_URL, {"courseId": 1}, format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
