"""
E-Learning Package - Course Platform

Dieses Paket enthält alle Module für die Kursplattform.
Ermöglicht Kurserstellung mit Units, Lektionen, Quizzes und Prüfungen,
Einschreibungen sowie die Verfolgung von Prüfungsversuchen und Lernfortschritt.

Features:
- Kursverwaltung mit Preisen, Veröffentlichung und Kurseinstellungen
- Sortierbare Units und Lektionen (Einfügen mit Verschieben, Umsortieren)
- Prüfungsversuche mit Versuchslimit und Zeitfenster
- Fortschrittsberechnung pro Kurs
- Kursduplikation

Struktur:
- users/: Benutzerprofil, Rolle und Authentifizierung
- courses/: Kurse, Units, Lektionen und Quizzes
- final_exam/: Unit-Prüfungen und Prüfungsversuche
- enrollments/: Einschreibungen und Fortschritt
- services/: Geschäftslogik (Sortierung, Versuche, Fortschritt, Duplikation)
- management/: Django Management Commands

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""
