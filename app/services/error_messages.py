"""Translations for the error details returned by the API.

Keys are the English detail strings raised by the services; English itself is
the untranslated base value.
"""

ERROR_MESSAGE_TRANSLATIONS: dict[str, dict[str, str]] = {
    "Weekly schedule not found.": {
        "es": "Horario semanal no encontrado.",
        "it": "Orario settimanale non trovato.",
        "fr": "Planning hebdomadaire introuvable.",
    },
    "Day schedule not found.": {
        "es": "Horario del día no encontrado.",
        "it": "Orario del giorno non trovato.",
        "fr": "Planning du jour introuvable.",
    },
    "Time slot not found.": {
        "es": "Franja horaria no encontrada.",
        "it": "Fascia oraria non trovata.",
        "fr": "Créneau introuvable.",
    },
    "Invalid date. Use YYYY-MM-DD.": {
        "es": "Fecha no válida. Use AAAA-MM-DD.",
        "it": "Data non valida. Usa AAAA-MM-GG.",
        "fr": "Date invalide. Utilisez AAAA-MM-JJ.",
    },
    "Authentication required.": {
        "es": "Se requiere autenticación.",
        "it": "Autenticazione richiesta.",
        "fr": "Authentification requise.",
    },
    "Insufficient permissions.": {
        "es": "Permisos insuficientes.",
        "it": "Permessi insufficienti.",
        "fr": "Permissions insuffisantes.",
    },
    "User not found.": {
        "es": "Usuario no encontrado.",
        "it": "Utente non trovato.",
        "fr": "Utilisateur introuvable.",
    },
}
