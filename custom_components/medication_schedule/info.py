"""Plain-language medication information from the Gemini API."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from homeassistant.core import HomeAssistant
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .const import GEMINI_MODEL, GEMINI_URL, INFO_TIMEOUT_SECONDS, LANGUAGE_EN, LANGUAGE_PT_BR

_LOGGER = logging.getLogger(__name__)

PROMPTS = {
    LANGUAGE_PT_BR: (
        'Forneça um resumo simples e de fácil compreensão para uma pessoa idosa sobre o medicamento "{name}". '
        "Explique em português claro e com parágrafos curtos:\n"
        "1.  **Para que serve:** Qual a principal finalidade deste medicamento?\n"
        "2.  **Como tomar:** Dicas gerais de como deve ser tomado (ex: com água, após refeições), sem prescrever uma dose.\n"
        "3.  **Possíveis efeitos colaterais comuns:** Liste 2 ou 3 efeitos colaterais comuns de forma simples.\n\n"
        'Termine com a seguinte frase obrigatória: "Importante: Esta é apenas uma informação geral. '
        'Sempre siga as orientações do seu médico e leia a bula."\n\n'
        "Não forneça aconselhamento médico. O tom deve ser informativo, calmo e muito fácil de ler. "
        "Use negrito para destacar os títulos."
    ),
    LANGUAGE_EN: (
        'Give a simple, easy to understand summary for an older person about the medication "{name}". '
        "Explain in plain English with short paragraphs:\n"
        "1.  **What it is for:** What is the main purpose of this medication?\n"
        "2.  **How to take it:** General tips on how it should be taken (e.g. with water, after meals), without prescribing a dose.\n"
        "3.  **Common side effects:** List 2 or 3 common side effects in simple terms.\n\n"
        'End with this mandatory sentence: "Important: This is general information only. '
        'Always follow your doctor\'s advice and read the package leaflet."\n\n'
        "Do not give medical advice. The tone should be informative, calm and very easy to read. "
        "Use bold for the headings."
    ),
}

DISABLED_TEXT = {
    LANGUAGE_PT_BR: (
        "O recurso de informações sobre medicamentos está desativado. "
        "A chave da API não foi configurada."
    ),
    LANGUAGE_EN: "Medication information is disabled. No API key has been configured.",
}

UNAVAILABLE_TEXT = {
    LANGUAGE_PT_BR: (
        "Desculpe, não foi possível buscar as informações sobre este medicamento no momento. "
        "Por favor, tente novamente mais tarde."
    ),
    LANGUAGE_EN: (
        "Sorry, information about this medication could not be retrieved right now. "
        "Please try again later."
    ),
}


def _text(table: dict[str, str], language: str) -> str:
    return table.get(language, table[LANGUAGE_PT_BR])


def _extract_text(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    candidates = payload.get("candidates") or []
    if not candidates:
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    return "".join(texts) or None


async def async_fetch_medication_info(
    hass: HomeAssistant, name: str, api_key: str | None, language: str = LANGUAGE_PT_BR
) -> str:
    """Return displayable text about ``name``; never raises.

    A single request is made. Any failure yields the localized
    "unavailable" message, a missing key the "disabled" one.
    """
    if not api_key:
        return _text(DISABLED_TEXT, language)

    session = async_get_clientsession(hass)
    url = GEMINI_URL.format(model=GEMINI_MODEL)
    body = {"contents": [{"parts": [{"text": _text(PROMPTS, language).format(name=name)}]}]}
    try:
        async with asyncio.timeout(INFO_TIMEOUT_SECONDS):
            async with session.post(url, json=body, headers={"x-goog-api-key": api_key}) as resp:
                if resp.status != 200:
                    _LOGGER.warning("Medication info request for %s failed: HTTP %s", name, resp.status)
                    return _text(UNAVAILABLE_TEXT, language)
                payload = await resp.json()
    except (aiohttp.ClientError, TimeoutError, ValueError) as err:
        _LOGGER.warning("Medication info request for %s failed: %s", name, err)
        return _text(UNAVAILABLE_TEXT, language)

    text = _extract_text(payload)
    if text is None:
        _LOGGER.warning("Medication info response for %s had no text", name)
        return _text(UNAVAILABLE_TEXT, language)
    return text
