"""
Localized bot messages (English, Portuguese, Spanish).
"""

from typing import Dict

import pendulum
from pendulum import DateTime

from .models import DEFAULT_LANGUAGE

MESSAGES: Dict[str, Dict[str, str]] = {
    "welcome": {
        "en": "Hello! I'm Agenda AI, your scheduling assistant. I understand English, Portuguese, and Spanish. How can I help you today?",
        "pt": "Olá! Sou a Agenda AI, sua assistente de agendamento. Entendo inglês, português e espanhol. Como posso ajudar hoje?",
        "es": "¡Hola! Soy Agenda AI, tu asistente de programación. Entiendo inglés, portugués y español. ¿Cómo puedo ayudarte hoy?",
    },
    "greeting": {
        "en": "Hello! I'm your Agenda AI assistant. How can I help you schedule your appointment today? I also understand Portuguese and Spanish.",
        "pt": "Olá! Sou sua assistente Agenda AI. Como posso ajudar a agendar seu compromisso hoje? Também entendo inglês e espanhol.",
        "es": "¡Hola! Soy tu asistente Agenda AI. ¿Cómo puedo ayudarte a programar tu cita hoy? También entiendo inglés y portugués.",
    },
    "processing": {
        "en": "Okay, let me see what I can do for your request...",
        "pt": "Ok, deixe-me ver o que posso fazer pela sua solicitação...",
        "es": "Ok, déjame ver qué puedo hacer por tu solicitud...",
    },
    "checking_requested": {
        "en": "Got it! Let me check for available slots around that time for you...",
        "pt": "Entendi! Deixe-me verificar os horários disponíveis próximos a esse horário para você...",
        "es": "¡Entendido! Déjame revisar los horarios disponibles cerca de esa hora para ti...",
    },
    "checking_next": {
        "en": "Certainly! Let me find the next available slots for you...",
        "pt": "Claro! Deixe-me verificar os próximos horários disponíveis para você...",
        "es": "¡Claro! Déjame revisar los próximos horarios disponibles para ti...",
    },
    "slots_found": {
        "en": "Here are some available slots. Please choose one, or let me know if another time works better:",
        "pt": "Aqui estão alguns horários disponíveis. Por favor, escolha um, ou me diga se outro horário funciona melhor:",
        "es": "Aquí hay algunos horarios disponibles. Por favor, elige uno, o dime si otro horario te viene mejor:",
    },
    "no_openings": {
        "en": "I'm sorry, I couldn't find any openings that match your request. Would you like to try a different time or perhaps another day?",
        "pt": "Desculpe, não consegui encontrar nenhum horário disponível que corresponda à sua solicitação. Gostaria de tentar um horário ou dia diferente?",
        "es": "Lo siento, no pude encontrar ningún horario disponible que coincida con tu solicitud. ¿Te gustaría intentar una hora o día diferente?",
    },
    "no_immediate_openings": {
        "en": "Unfortunately, I don't see any immediate openings. Would you like to try specifying a particular time or day?",
        "pt": "Infelizmente, não vejo nenhum horário disponível no momento. Gostaria de tentar especificar um horário ou dia diferente?",
        "es": "Desafortunadamente, no veo ningún horario disponible en este momento. ¿Te gustaría intentar especificar una hora o día diferente?",
    },
    "not_understood": {
        "en": "I'm here to help! What can I do for you today? Would you like to schedule an appointment?",
        "pt": "Estou aqui para ajudar! O que posso fazer por você hoje? Gostaria de marcar um atendimento?",
        "es": "¡Estoy aquí para ayudar! ¿Qué puedo hacer por ti hoy? ¿Te gustaría programar una cita?",
    },
    "technical_error": {
        "en": "Apologies, I seem to have run into a technical hiccup. Could you please try your request again?",
        "pt": "Desculpas, parece que tive um problema técnico. Você poderia tentar sua solicitação novamente?",
        "es": "Disculpas, parece que he tenido un contratiempo técnico. ¿Podrías intentar tu solicitud de nuevo?",
    },
    "book_request": {
        "en": "I'd like to book the slot: {slot}",
        "pt": "Gostaria de reservar o horário: {slot}",
        "es": "Me gustaría reservar el horario: {slot}",
    },
    "confirmed": {
        "en": 'Great! Your appointment for "{subject}" is confirmed. You\'ll find an "Add to Calendar" file below.',
        "pt": 'Ótimo! Seu compromisso para "{subject}" está confirmado. Você encontrará um arquivo "Adicionar ao Calendário" abaixo.',
        "es": '¡Genial! Tu cita para "{subject}" está confirmada. Encontrarás un archivo "Añadir al Calendario" abajo.',
    },
    "default_subject": {
        "en": "Appointment",
        "pt": "Compromisso",
        "es": "Cita",
    },
    "default_attendee": {
        "en": "Valued User",
        "pt": "Estimado Usuário",
        "es": "Estimado Usuario",
    },
    "event_description": {
        "en": "Your appointment scheduled via Agenda AI.\n\nThis is a meeting with {attendee}.",
        "pt": "Seu compromisso agendado pela Agenda AI.\n\nEste é um encontro com {attendee}.",
        "es": "Tu cita programada a través de Agenda AI.\n\nEsta es una reunión con {attendee}.",
    },
}

# pendulum locale names differ from our language codes
PENDULUM_LOCALES = {
    "en": "en",
    "pt": "pt_br",
    "es": "es",
}


def localize(key: str, language: str | None, **params: str) -> str:
    """
    Look up a message in the given language.

    Unknown languages fall back to English; unknown keys raise KeyError.
    """
    translations = MESSAGES[key]
    text = translations.get(language or DEFAULT_LANGUAGE, translations[DEFAULT_LANGUAGE])
    return text.format(**params) if params else text


def format_slot(slot: DateTime, language: str | None, timezone: str) -> str:
    """
    Format a slot start for display in the requester's timezone.

    Example (en): ``Monday, Apr 29 2024 11:00``
    """
    locale = PENDULUM_LOCALES.get(language or DEFAULT_LANGUAGE, "en")
    local = pendulum.instance(slot).in_timezone(timezone)
    return local.format("dddd, MMM D YYYY HH:mm", locale=locale)
