"""
E-Learning Courses Package - Course Platform

Dieses Paket enthält die Kursverwaltung: Kurse, Units, Lektionen und
Lektions-Quizzes inklusive Sortierung, Veröffentlichung und Duplikation.

Struktur:
- models.py: Datenmodelle für Kurse, Units, Lektionen und Quizzes
- serializers.py: API-Serialisierung
- views/: Admin-Views für Kurse, Units und Lektionen

Author: DSP Development Team
Version: 1.0.0
"""
