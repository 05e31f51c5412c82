"""
E-Learning Course Views Package

Admin-Views für Kurse, Units, Lektionen und Lektions-Quizzes.
Alle Views verlangen die Rolle ADMIN (``IsPlatformAdmin``).

Author: DSP Development Team
Version: 1.0.0
"""

from .course_views import *
from .unit_views import *
from .lesson_views import *
