"""
E-Learning Enrollments Package - Course Platform

Dieses Paket enthält Einschreibungen, Fortschrittsdaten und das
Aktivitätsprotokoll sowie die Studenten-Views für Kursübersicht und
Fortschritt.

Author: DSP Development Team
Version: 1.0.0
"""
