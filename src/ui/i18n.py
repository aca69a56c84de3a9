# src/ui/i18n.py

"""Display-string translations with an observable current language."""

import logging
import re
from collections.abc import Callable

from src.config.settings import Settings
from src.storage.local_store import LocalStore

logger = logging.getLogger("radar_precos.i18n")

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")

FALLBACK_LANG = "en-US"

DICTS: dict[str, dict[str, str]] = {
    "pt-BR": {
        "app.title": "Radar de Preços",
        "app.subtitle": "Compare o menor preço por cidade",
        "steps.step1": "PASSO 1",
        "steps.addProducts": "Adicione produtos (um por linha)",
        "steps.step2": "PASSO 2",
        "steps.chooseCities": "Escolha as cidades",
        "steps.citiesLabel": "Cidades",
        "steps.selectAll": "Selecionar todas",
        "buttons.getPrices": "Buscar preços",
        "buttons.loading": "Buscando...",
        "error.title": "Não foi possível buscar os preços",
        "error.body": "Verifique sua conexão e tente novamente.",
        "error.missingKey": "Configure sua chave da SerpAPI nas configurações.",
        "error.tryAgain": "Tentar novamente",
        "error.dismiss": "Fechar",
        "key.hint": "Adicione sua chave da SerpAPI em Configurações (k) para buscar preços.",
        "key.present": "Chave configurada",
        "key.missing": "Sem chave",
        "empty.hint": "Adicione produtos, escolha cidades e clique em Buscar preços.",
        "table.city": "Cidade",
        "table.loading": "Carregando...",
        "table.noResult": "Sem resultado",
        "table.lastUpdated": "Atualizado às {{ time }}",
        "table.localeBadge": " · preços em BRL",
        "popover.title": "{{ product }} em {{ city }}",
        "popover.top5": "Top 5 ofertas",
        "popover.empty": "Nenhuma oferta para mostrar.",
        "popover.shipping": "Frete",
        "settings.title": "Configurações",
        "settings.subtitle": "Sua chave fica salva apenas neste computador.",
        "settings.keyLabel": "Chave da SerpAPI",
        "settings.keyHelp": "Crie uma conta em serpapi.com e copie sua chave de API.",
        "settings.show": "Mostrar",
        "settings.hide": "Ocultar",
        "settings.save": "Salvar",
        "settings.cancel": "Cancelar",
        "settings.saved": "Chave salva",
        "notify.copied": "Link copiado",
        "notify.copyFailed": "Instale o pyperclip para copiar links",
        "notify.noLink": "Oferta sem link",
        "footer.text": "Preços via Google Shopping (SerpAPI).",
        "lang.pt": "Português (Brasil)",
        "lang.en": "English (US)",
        "lang.changed": "Idioma: {{ lang }}",
    },
    "en-US": {
        "app.title": "Price Radar",
        "app.subtitle": "Compare the lowest price by city",
        "steps.step1": "STEP 1",
        "steps.addProducts": "Add products (one per line)",
        "steps.step2": "STEP 2",
        "steps.chooseCities": "Choose cities",
        "steps.citiesLabel": "Cities",
        "steps.selectAll": "Select all",
        "buttons.getPrices": "Get prices",
        "buttons.loading": "Loading...",
        "error.title": "Could not fetch prices",
        "error.body": "Check your connection and try again.",
        "error.missingKey": "Set your SerpAPI key in settings.",
        "error.tryAgain": "Try again",
        "error.dismiss": "Dismiss",
        "key.hint": "Add your SerpAPI key in Settings (k) to fetch prices.",
        "key.present": "Key set",
        "key.missing": "No key",
        "empty.hint": "Add products, choose cities and press Get prices.",
        "table.city": "City",
        "table.loading": "Loading...",
        "table.noResult": "No result",
        "table.lastUpdated": "Last updated at {{ time }}",
        "table.localeBadge": " · prices in BRL",
        "popover.title": "{{ product }} in {{ city }}",
        "popover.top5": "Top 5 offers",
        "popover.empty": "No offers to show.",
        "popover.shipping": "Shipping",
        "settings.title": "Settings",
        "settings.subtitle": "Your key is only stored on this computer.",
        "settings.keyLabel": "SerpAPI key",
        "settings.keyHelp": "Create an account at serpapi.com and copy your API key.",
        "settings.show": "Show",
        "settings.hide": "Hide",
        "settings.save": "Save",
        "settings.cancel": "Cancel",
        "settings.saved": "Key saved",
        "notify.copied": "Link copied",
        "notify.copyFailed": "Install pyperclip to copy links",
        "notify.noLink": "Offer has no link",
        "footer.text": "Prices via Google Shopping (SerpAPI).",
        "lang.pt": "Português (Brasil)",
        "lang.en": "English (US)",
        "lang.changed": "Language: {{ lang }}",
    },
}


def interpolate(text: str, **variables: object) -> str:
    """Replace ``{{ name }}`` placeholders; unknown names become ''."""
    if not variables:
        return text

    def _sub(match: re.Match[str]) -> str:
        value = variables.get(match.group(1))
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_sub, text)


def _is_supported(lang: str | None) -> bool:
    """True when *lang* is enabled in settings and has a dictionary."""
    return lang in Settings.SUPPORTED_LANGS and lang in DICTS


class I18n:
    """Current display language with subscriber notification.

    One instance lives for the whole app run.  ``set_lang`` persists the
    choice through the local store and calls every subscriber with the
    new language code.
    """

    def __init__(self, store: LocalStore | None = None) -> None:
        self._store = store
        initial = store.lang() if store else Settings.DEFAULT_LANG
        self.lang: str = (
            initial if _is_supported(initial) else Settings.DEFAULT_LANG
        )
        self._listeners: list[Callable[[str], None]] = []

    def t(self, key: str, **variables: object) -> str:
        """Translate *key*, falling back to en-US and then the key itself."""
        raw = (
            DICTS.get(self.lang, {}).get(key)
            or DICTS[FALLBACK_LANG].get(key)
            or key
        )
        return interpolate(raw, **variables)

    def set_lang(self, lang: str) -> bool:
        """Switch language; unknown codes are ignored (returns False)."""
        if not _is_supported(lang):
            logger.warning("Ignoring unsupported language %r", lang)
            return False
        self.lang = lang
        if self._store is not None:
            self._store.set(Settings.LANG_KEY, lang)
        logger.info("Display language set to %s", lang)
        for listener in list(self._listeners):
            listener(lang)
        return True

    def toggle(self) -> str:
        """Advance to the next supported language, wrapping around."""
        langs = Settings.SUPPORTED_LANGS
        index = langs.index(self.lang) if self.lang in langs else -1
        other = langs[(index + 1) % len(langs)]
        if other != self.lang:
            self.set_lang(other)
        return self.lang

    def subscribe(self, listener: Callable[[str], None]) -> None:
        """Register *listener* for language changes."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[str], None]) -> None:
        """Stop notifying *listener*; unknown listeners are ignored."""
        if listener in self._listeners:
            self._listeners.remove(listener)
