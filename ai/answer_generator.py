#!/usr/bin/env python3
"""
Answer Generation Service

Drafts screening-question answers and summarizes resumes through an
OpenAI-compatible chat completions endpoint.

Generation is optional: without an API key every call returns a fixed
"disabled" message, and any backend failure returns a fixed error message.
Callers always get a string back.

Example:
    from ai.answer_generator import AnswerGenerator

    generator = AnswerGenerator()
    answer = await generator.generate(
        "Why should you be hired for this role?",
        keywords="python, django",
        skills_summary="Python, REST APIs, PostgreSQL",
    )
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, List, Dict

import aiohttp

from api.config import AppConfig, get_config

logger = logging.getLogger(__name__)

ANSWER_DISABLED_MESSAGE = "AI feature disabled. Please add MODEL_API_KEY to enable automatic answer generation."
ANSWER_ERROR_MESSAGE = "Error: Unable to connect to AI service."
ANSWER_EMPTY_MESSAGE = "Could not generate answer."

RESUME_DISABLED_MESSAGE = "AI resume analysis disabled. Upload a resume to manually enter your skills."
RESUME_ERROR_MESSAGE = "Error: Unable to analyze resume."
RESUME_EMPTY_MESSAGE = "Could not analyze resume."

# Used when no resume analysis is available
DEFAULT_SKILLS_SUMMARY = "General software engineering student"

# Returned instead of generated text; never stored as an answer
FALLBACK_MESSAGES = frozenset({
    ANSWER_DISABLED_MESSAGE,
    ANSWER_ERROR_MESSAGE,
    ANSWER_EMPTY_MESSAGE,
    RESUME_DISABLED_MESSAGE,
    RESUME_ERROR_MESSAGE,
    RESUME_EMPTY_MESSAGE,
})

# Resume text beyond this is not sent to the model
RESUME_CHAR_LIMIT = 2000

ANSWER_PROMPT = """You are an expert career coach helping a student apply for an internship.

Job Keywords: {keywords}
Candidate Skills: {skills_summary}

The internship application asks the following question:
"{question}"

Write a professional, human-like, and persuasive answer (max 150 words).
Focus on value, enthusiasm, and specific skills. Do not include placeholders like [Your Name]."""

RESUME_PROMPT = """Analyze the following resume text and provide a concise summary of the candidate's top 5 technical skills and 3 soft skills.

Resume Text:
{resume_text}"""


class CompletionError(Exception):
    """The completions endpoint answered without a usable choice."""


@dataclass
class CompletionResponse:
    """Response from the completions endpoint."""
    success: bool
    content: str = ""
    error: Optional[str] = None
    tokens_used: Optional[int] = None


class AnswerGenerator:
    """Best-effort text generation for the answer editor."""

    def __init__(self, config: Optional[AppConfig] = None, api_key: Optional[str] = None):
        self.config = config or get_config()
        self.api_key = api_key if api_key is not None else self.config.MODEL_API_KEY
        self.model = self.config.MODEL_NAME
        self.base_url = self.config.MODEL_BASE_URL.rstrip("/")
        self.max_retries = max(1, self.config.AI_MAX_RETRIES)
        self.timeout = self.config.AI_TIMEOUT_SECONDS

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def generate(self, question: str, keywords: str = "", skills_summary: str = "") -> str:
        """Draft an answer to ``question``; never raises."""
        if not self.enabled:
            return ANSWER_DISABLED_MESSAGE

        prompt = ANSWER_PROMPT.format(
            keywords=keywords,
            skills_summary=skills_summary or DEFAULT_SKILLS_SUMMARY,
            question=question,
        )
        response = await self.complete(prompt, temperature=0.7, max_tokens=400)
        if not response.success:
            logger.error(f"Error generating answer: {response.error}")
            return ANSWER_ERROR_MESSAGE
        logger.debug(f"Answer generated ({response.tokens_used} tokens)")
        return response.content.strip() or ANSWER_EMPTY_MESSAGE

    async def analyze_resume(self, resume_text: str) -> str:
        """Summarize the top technical and soft skills in ``resume_text``; never raises."""
        if not self.enabled:
            return RESUME_DISABLED_MESSAGE

        prompt = RESUME_PROMPT.format(resume_text=(resume_text or "")[:RESUME_CHAR_LIMIT])
        response = await self.complete(prompt, temperature=0.2, max_tokens=500)
        if not response.success:
            logger.error(f"Error analyzing resume: {response.error}")
            return RESUME_ERROR_MESSAGE
        logger.debug(f"Resume analyzed ({response.tokens_used} tokens)")
        return response.content.strip() or RESUME_EMPTY_MESSAGE

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 400,
    ) -> CompletionResponse:
        """
        One chat completion with retries.

        Returns a failed CompletionResponse instead of raising once retries
        are exhausted.
        """
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        last_error = "Max retries exceeded"
        for attempt in range(self.max_retries):
            try:
                content, tokens = await self._post(messages, temperature, max_tokens)
                return CompletionResponse(success=True, content=content, tokens_used=tokens)
            except (aiohttp.ClientError, asyncio.TimeoutError, CompletionError, KeyError, IndexError, TypeError, AttributeError, ValueError) as e:
                last_error = str(e) or e.__class__.__name__
                logger.warning(f"AI request failed (attempt {attempt + 1}): {last_error}")
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(1 * (attempt + 1))

        return CompletionResponse(success=False, error=last_error)

    async def _post(self, messages, temperature: float, max_tokens: int):
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "messages": messages,
                    "temperature": temperature,
                    "max_tokens": max_tokens,
                },
            ) as response:
                data = await response.json()

        if "choices" not in data:
            error = data.get("error") or {}
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise CompletionError(message or f"HTTP {response.status}")

        content = data["choices"][0]["message"]["content"] or ""
        tokens = (data.get("usage") or {}).get("total_tokens")
        return content, tokens

