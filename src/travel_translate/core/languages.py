"""Static language data: names, pack phrase tables, travel contexts."""

from __future__ import annotations

import re
from typing import Dict, List, Optional

SUPPORTED_LANGUAGES: Dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "ja": "Japanese",
    "zh": "Chinese",
    "ko": "Korean",
    "ar": "Arabic",
}


def language_name(code: str) -> str:
    return SUPPORTED_LANGUAGES.get(code, "Unknown")


# Phrase ids are shared across languages; offline lookup joins on them.
BUILTIN_PHRASES: Dict[str, List[Dict[str, str]]] = {
    "en": [
        {"id": "greeting", "text": "Hello"},
        {"id": "thanks", "text": "Thank you"},
        {"id": "goodbye", "text": "Goodbye"},
        {"id": "help", "text": "I need help"},
        {"id": "yes", "text": "Yes"},
        {"id": "no", "text": "No"},
    ],
    "es": [
        {"id": "greeting", "text": "Hola"},
        {"id": "thanks", "text": "Gracias"},
        {"id": "goodbye", "text": "Adiós"},
        {"id": "help", "text": "Necesito ayuda"},
        {"id": "yes", "text": "Sí"},
        {"id": "no", "text": "No"},
    ],
    "fr": [
        {"id": "greeting", "text": "Bonjour"},
        {"id": "thanks", "text": "Merci"},
        {"id": "goodbye", "text": "Au revoir"},
        {"id": "help", "text": "J'ai besoin d'aide"},
        {"id": "yes", "text": "Oui"},
        {"id": "no", "text": "Non"},
    ],
    "de": [
        {"id": "greeting", "text": "Hallo"},
        {"id": "thanks", "text": "Danke"},
        {"id": "goodbye", "text": "Auf Wiedersehen"},
        {"id": "help", "text": "Ich brauche Hilfe"},
        {"id": "yes", "text": "Ja"},
        {"id": "no", "text": "Nein"},
    ],
    "it": [
        {"id": "greeting", "text": "Ciao"},
        {"id": "thanks", "text": "Grazie"},
        {"id": "goodbye", "text": "Arrivederci"},
        {"id": "help", "text": "Ho bisogno di aiuto"},
        {"id": "yes", "text": "Sì"},
        {"id": "no", "text": "No"},
    ],
    "ja": [
        {"id": "greeting", "text": "こんにちは"},
        {"id": "thanks", "text": "ありがとう"},
        {"id": "goodbye", "text": "さようなら"},
        {"id": "help", "text": "助けが必要です"},
        {"id": "yes", "text": "はい"},
        {"id": "no", "text": "いいえ"},
    ],
    "zh": [
        {"id": "greeting", "text": "你好"},
        {"id": "thanks", "text": "谢谢"},
        {"id": "goodbye", "text": "再见"},
        {"id": "help", "text": "我需要帮助"},
        {"id": "yes", "text": "是"},
        {"id": "no", "text": "否"},
    ],
}


def builtin_phrases(code: str) -> List[Dict[str, str]]:
    """Phrase table for ``code``, falling back to English."""
    return [dict(p) for p in BUILTIN_PHRASES.get(code, BUILTIN_PHRASES["en"])]


TRANSLATION_CONTEXTS: List[Dict[str, str]] = [
    {"id": "restaurant", "name": "Restaurant", "icon": "restaurant"},
    {"id": "transportation", "name": "Transportation", "icon": "bus"},
    {"id": "hotel", "name": "Hotel", "icon": "bed"},
    {"id": "shopping", "name": "Shopping", "icon": "cart"},
    {"id": "emergency", "name": "Emergency", "icon": "medkit"},
    {"id": "sightseeing", "name": "Sightseeing", "icon": "camera"},
]

CONTEXT_PHRASES: Dict[str, List[str]] = {
    "restaurant": [
        "Can I have the menu?",
        "Check, please",
        "I would like to make a reservation",
        "Is this dish spicy?",
        "I have a food allergy",
    ],
    "transportation": [
        "Where is the train station?",
        "How much is a ticket to...?",
        "When is the next departure?",
        "Is this seat taken?",
        "I need to go to this address",
    ],
    "hotel": [
        "I have a reservation",
        "Is breakfast included?",
        "What time is check-out?",
        "Do you have room service?",
        "The air conditioning is not working",
    ],
    "shopping": [
        "How much does this cost?",
        "Do you accept credit cards?",
        "Do you have this in a different size?",
        "Can I get a receipt?",
        "I'm just looking, thank you",
    ],
    "emergency": [
        "I need a doctor",
        "Call an ambulance",
        "This is an emergency",
        "I lost my passport",
        "I need help",
    ],
    "sightseeing": [
        "Where is the museum?",
        "What time does it open?",
        "How much is the entrance fee?",
        "Can I take photos here?",
        "Is there a guided tour available?",
    ],
}


def context_phrases(context_id: str) -> List[str]:
    return list(CONTEXT_PHRASES.get(context_id, []))


# context -> "src-tgt" -> source phrase -> translation
CONTEXTUAL_TRANSLATIONS: Dict[str, Dict[str, Dict[str, str]]] = {
    "restaurant": {
        "en-es": {
            "Can I have the menu?": "¿Puedo ver el menú?",
            "Check, please": "La cuenta, por favor",
            "I would like to make a reservation": "Me gustaría hacer una reserva",
            "Is this dish spicy?": "¿Este plato es picante?",
            "I have a food allergy": "Tengo alergia alimentaria",
        },
        "en-fr": {
            "Can I have the menu?": "Puis-je avoir le menu ?",
            "Check, please": "L'addition, s'il vous plaît",
            "I would like to make a reservation": "Je voudrais faire une réservation",
            "Is this dish spicy?": "Ce plat est-il épicé ?",
            "I have a food allergy": "J'ai une allergie alimentaire",
        },
    },
    "transportation": {
        "en-es": {
            "Where is the train station?": "¿Dónde está la estación de tren?",
            "How much is a ticket to...?": "¿Cuánto cuesta un billete para...?",
            "When is the next departure?": "¿Cuándo es la próxima salida?",
            "Is this seat taken?": "¿Está ocupado este asiento?",
            "I need to go to this address": "Necesito ir a esta dirección",
        },
        "en-fr": {
            "Where is the train station?": "Où est la gare ?",
            "How much is a ticket to...?": "Combien coûte un billet pour... ?",
            "When is the next departure?": "Quand est le prochain départ ?",
            "Is this seat taken?": "Ce siège est-il pris ?",
            "I need to go to this address": "Je dois aller à cette adresse",
        },
    },
    "hotel": {
        "en-es": {
            "I have a reservation": "Tengo una reserva",
            "Is breakfast included?": "¿Está incluido el desayuno?",
            "What time is check-out?": "¿A qué hora es el check-out?",
            "Do you have room service?": "¿Tienen servicio de habitación?",
            "The air conditioning is not working": "El aire acondicionado no funciona",
        },
        "en-fr": {
            "I have a reservation": "J'ai une réservation",
            "Is breakfast included?": "Le petit-déjeuner est-il inclus ?",
            "What time is check-out?": "À quelle heure est le check-out ?",
            "Do you have room service?": "Avez-vous un service de chambre ?",
            "The air conditioning is not working": "La climatisation ne fonctionne pas",
        },
    },
    "emergency": {
        "en-es": {
            "I need a doctor": "Necesito un médico",
            "Call an ambulance": "Llame a una ambulancia",
            "This is an emergency": "Esto es una emergencia",
            "I lost my passport": "Perdí mi pasaporte",
            "I need help": "Necesito ayuda",
        },
        "en-fr": {
            "I need a doctor": "J'ai besoin d'un médecin",
            "Call an ambulance": "Appelez une ambulance",
            "This is an emergency": "C'est une urgence",
            "I lost my passport": "J'ai perdu mon passeport",
            "I need help": "J'ai besoin d'aide",
        },
    },
}


def contextual_translation(text: str, source: str, target: str, context: str) -> Optional[str]:
    return CONTEXTUAL_TRANSLATIONS.get(context, {}).get(f"{source}-{target}", {}).get(text)


_STOP_WORDS: Dict[str, List[str]] = {
    "en": ["the", "and", "is", "are", "to", "in", "it", "you", "that", "was"],
    "es": ["el", "la", "los", "las", "y", "es", "son", "en", "que", "por"],
    "fr": ["le", "la", "les", "et", "est", "sont", "en", "que", "qui", "dans"],
    "de": ["der", "die", "das", "und", "ist", "sind", "in", "zu", "für", "auf"],
    "it": ["il", "la", "e", "che", "di", "in", "un", "una", "sono", "per"],
    "pt": ["o", "a", "os", "as", "e", "que", "em", "de", "para", "com"],
    "ru": ["и", "в", "не", "на", "я", "быть", "он", "с", "что", "а"],
}


def detect_language(text: str) -> str:
    """Guess a language code by counting common stop words; defaults to ``en``.

    Ties go to the language listed first.
    """
    words = re.findall(r"\w+", text.lower())
    detected, best = "en", 0
    for code, indicators in _STOP_WORDS.items():
        count = sum(1 for word in words if word in indicators)
        if count > best:
            detected, best = code, count
    return detected
