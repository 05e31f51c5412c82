"""
E-Learning Tests - DSP (Digital Solutions Platform)

Test-Suite der Kursplattform, gegliedert nach Bereichen:
- courses/: Kurs-, Unit- und Lektionsverwaltung, Reihenfolge
- exams/: Prüfungsverwaltung, Versuche, Bewertung
- enrollments/: Einschreibung und Fortschritt
- services/: Kursduplikation
- users/: Anmeldung und Rollen

Author: DSP Development Team
Version: 1.0.0
"""
