"""
E-Learning Final Exam Package - Course Platform

Dieses Paket enthält alle Module für die Unit-Prüfungen im E-Learning-System.

Features:
- Prüfungserstellung und -verwaltung pro Unit
- Prüfungsversuche mit Zwischenspeichern und Abgabe
- Automatische Bewertung von Multiple-Choice-Fragen
- Vorläufige Bewertung von Freitext-Antworten

Struktur:
- models.py: Datenmodelle für Prüfungen und Versuche
- serializers.py: API-Serialisierung für Prüfungsdaten
- views/: Studenten- und Admin-Views

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""
