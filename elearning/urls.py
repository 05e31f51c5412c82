"""
E-Learning Application URL Configuration

This module defines the URL routing of the course platform. Each functional
area keeps its own URL list and namespace.

URL Structure:
- /token/: Authentication endpoints (JWT cookies)
- /users/: Logout and current user
- /courses/: Course authoring (units, lessons, quizzes, exams), admin only
- /enrollments/: Student enrollment
- /student/: Student course list, progress, exam overview and exam attempts
- /grading/: Manual grading of submitted exam attempts, admin only

Author: DSP Development Team
Version: 1.0.0
"""

from typing import List
from django.urls import path, include, URLPattern

# Import der Views
from .users import views as user_views
from .courses import views as course_views
from .enrollments import views as enrollment_views
from .final_exam import views as exam_views

app_name = 'elearning'

# --- User URL Patterns ---

users_urlpatterns: List[URLPattern] = [
    path('logout/', user_views.LogoutView.as_view(), name='logout'),
    path('me/', user_views.CurrentUserView.as_view(), name='me'),
]

# --- Course Authoring URL Patterns ---

lesson_urlpatterns: List[URLPattern] = [
    path('', course_views.LessonListCreateView.as_view(), name='lesson-list'),
    path('reorder/', course_views.LessonReorderView.as_view(), name='lesson-reorder'),
    path('<int:lesson_id>/', course_views.LessonDetailView.as_view(), name='lesson-detail'),
    path('<int:lesson_id>/publish/', course_views.LessonPublishView.as_view(), name='lesson-publish'),
    path('<int:lesson_id>/quiz/', course_views.LessonQuizView.as_view(), name='lesson-quiz'),
]

unit_urlpatterns: List[URLPattern] = [
    path('', course_views.UnitListCreateView.as_view(), name='unit-list'),
    path('reorder/', course_views.UnitReorderView.as_view(), name='unit-reorder'),
    path('<int:unit_id>/', course_views.UnitDetailView.as_view(), name='unit-detail'),
    path('<int:unit_id>/lessons/', include(lesson_urlpatterns)),
    path('<int:unit_id>/exams/', exam_views.UnitExamListCreateView.as_view(), name='exam-list'),
    path('<int:unit_id>/exams/<int:exam_id>/', exam_views.UnitExamDetailView.as_view(), name='exam-detail'),
]

courses_urlpatterns: List[URLPattern] = [
    path('', course_views.CourseListCreateView.as_view(), name='course-list'),
    path('<int:course_id>/', course_views.CourseDetailView.as_view(), name='course-detail'),
    path('<int:course_id>/publish/', course_views.CoursePublishView.as_view(), name='course-publish'),
    path('<int:course_id>/duplicate/', course_views.CourseDuplicateView.as_view(), name='course-duplicate'),
    path('<int:course_id>/units/', include(unit_urlpatterns)),
]

# --- Student URL Patterns ---

student_urlpatterns: List[URLPattern] = [
    path('courses/', enrollment_views.StudentCoursesView.as_view(), name='student-courses'),
    path('courses/<int:course_id>/exams/', exam_views.StudentCourseExamsView.as_view(), name='student-course-exams'),
    path('progress/', enrollment_views.StudentProgressView.as_view(), name='student-progress'),
    path('exams/', exam_views.StudentExamListView.as_view(), name='student-exams'),
    path('exams/<int:exam_id>/attempt/', exam_views.ExamAttemptView.as_view(), name='exam-attempt'),
    path('exams/<int:exam_id>/save/', exam_views.ExamSaveView.as_view(), name='exam-save'),
    path('exams/<int:exam_id>/submit/', exam_views.ExamSubmitView.as_view(), name='exam-submit'),
]

# --- Grading URL Patterns (admin only) ---

grading_urlpatterns: List[URLPattern] = [
    path('pending/', exam_views.GradingQueueView.as_view(), name='grading-pending'),
    path('attempts/<int:attempt_id>/', exam_views.GradingAttemptView.as_view(), name='grading-attempt'),
    path('attempts/<int:attempt_id>/score/', exam_views.GradingScoreView.as_view(), name='grading-score'),
    path('attempts/<int:attempt_id>/complete/', exam_views.GradingCompleteView.as_view(), name='grading-complete'),
]

# --- Main URL Configuration for E-Learning Application ---

urlpatterns: List[URLPattern] = [
    # Authentication endpoints (JWT cookies)
    path('token/', user_views.CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('token/refresh/', user_views.CustomTokenRefreshView.as_view(), name='token_refresh'),

    # Functional area URL includes with proper namespacing
    path('users/', include((users_urlpatterns, 'users'))),
    path('courses/', include((courses_urlpatterns, 'courses'))),
    path('enrollments/', enrollment_views.EnrollmentListCreateView.as_view(), name='enrollments'),
    path('student/', include((student_urlpatterns, 'student'))),
    path('grading/', include((grading_urlpatterns, 'grading'))),
]
