"""
AI Agents for Finledger

CRITICAL BOUNDARIES:

CATEGORY AGENT:
   - CAN: Suggest a category for a transaction description
   - CANNOT: Persist anything or create transactions
   - CANNOT: Return a label outside the configured category list
   - MUST: Fall back to the default category ("Outros") on any failure

The LLM is a CLASSIFIER, not an ORACLE. A missing API key, a network
error or an unusable answer all yield the default category; a
suggestion never blocks transaction creation.
"""

from typing import Any, Optional

import google.generativeai as genai
import structlog
from pydantic import BaseModel, Field

from finledger.config import GeminiSettings, LedgerSettings, get_settings
from finledger.models.ledger import TransactionType


logger = structlog.get_logger("finledger.agents")


class CategorySuggestion(BaseModel):
    """AI's suggestion for a transaction category."""

    category: str
    from_model: bool = Field(
        default=False,
        description="False when the default category was used as fallback"
    )


class CategoryAgent:
    """
    Suggests a category for a transaction description.

    RESPONSIBILITIES:
    - Ask Gemini to pick ONE label from the list for the given type
    - Normalize the answer (quotes, whitespace, case)

    BOUNDARIES:
    - NEVER persists data
    - NEVER returns a label outside the list
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        ledger_settings: Optional[LedgerSettings] = None,
        model: Optional[Any] = None,
    ):
        """
        Args:
            settings: Gemini settings (API key, model name, temperature)
            ledger_settings: Category catalogues and the default category
            model: Pre-built model exposing `generate_content_async`
        """
        self._settings = settings or get_settings().gemini
        self._ledger_settings = ledger_settings or get_settings().ledger
        self._model = model
        if self._model is None and self._settings.api_key:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": 32,
            }
        )

    def _categories(self, kind: TransactionType) -> list[str]:
        if kind == TransactionType.INCOME:
            return self._ledger_settings.income_categories_list
        return self._ledger_settings.expense_categories_list

    def _fallback(self) -> CategorySuggestion:
        return CategorySuggestion(category=self._ledger_settings.default_category)

    def _match(self, answer: str, categories: list[str]) -> Optional[str]:
        cleaned = answer.strip().strip("'\"`.").strip()
        for category in categories:
            if category.lower() == cleaned.lower():
                return category
        return None

    async def suggest_category(
        self,
        description: str,
        kind: TransactionType = TransactionType.EXPENSE,
    ) -> CategorySuggestion:
        """
        Suggest a category for `description`.

        Returns the default category when no model is configured, the
        call fails, or the answer is not in the list.
        """
        if self._model is None or not description.strip():
            return self._fallback()

        categories = self._categories(kind)
        direction = "Entrada (Receita)" if kind == TransactionType.INCOME else "Saída (Despesa)"
        prompt = f"""Você é um assistente financeiro. Categorize a transação abaixo escolhendo ESTRITAMENTE uma das categorias da lista fornecida.

Transação: "{description}"
Tipo: {direction}

Lista de Categorias Permitidas: {', '.join(categories)}

Retorne APENAS o nome da categoria exata da lista. Se não tiver certeza, retorne "{self._ledger_settings.default_category}"."""

        try:
            response = await self._model.generate_content_async(prompt)
            category = self._match(response.text, categories)
        except Exception as e:
            logger.warning("category_suggestion_failed", error=str(e))
            return self._fallback()

        if category is None:
            return self._fallback()
        return CategorySuggestion(category=category, from_model=True)
