"""
E-Learning Enrollment Views Package

Studenten-Views für Einschreibung, Kursübersicht und Fortschritt.

Author: DSP Development Team
Version: 1.0.0
"""

from .enrollment_views import *
from .progress_views import *
