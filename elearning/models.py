"""
E-Learning Application Models Registry

This module serves as the central models registry for the E-Learning application.
It imports and exposes all models from the logical submodules (users, courses,
final_exam, enrollments) to ensure they are properly registered with Django's
ORM system.

Architecture:
- users/: Profile and platform role
- courses/: Courses, units, lessons and lesson quizzes
- final_exam/: Unit exams and exam attempts
- enrollments/: Enrollments, progress records and the activity log

Author: DSP Development Team
Version: 1.0.0
"""

# Import all user-related models for registration with Django ORM
from .users.models import *

# Import all course authoring models for registration with Django ORM
from .courses.models import *

# Import all exam-related models for registration with Django ORM
from .final_exam.models import *

# Import all enrollment and progress models for registration with Django ORM
from .enrollments.models import *
