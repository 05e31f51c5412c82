"""
E-Learning Users Views Package - DSP (Digital Solutions Platform)

Dieses Paket enthält die Views für Anmeldung und Benutzerinformationen.

Features:
- JWT-basierte Authentifizierung mit HTTP-only Cookies
- Logout mit Token-Invalidierung
- Abfrage des eigenen Benutzers inklusive Rolle

Author: DSP Development Team
Version: 1.0.0
"""

from .auth_views import (
    CustomTokenObtainPairView,
    CustomTokenRefreshView,
    LogoutView,
)
from .user_self_info import CurrentUserView
