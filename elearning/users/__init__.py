"""
E-Learning Users Package - DSP (Digital Solutions Platform)

Dieses Paket enthält die Benutzerverwaltung der Kursplattform.

Features:
- Benutzerprofile mit Plattformrolle (ADMIN / STUDENT)
- JWT-basierte Authentifizierung über HTTP-only Cookies
- Automatische Profilerstellung durch Django-Signale

Struktur:
- models.py: Benutzerprofile und Signal-Handler
- serializers.py: Token- und Benutzerserialisierung
- views/: Anmeldung, Logout, eigener Benutzer

Author: DSP Development Team
Version: 1.0.0
"""
