"""AI patent assistant using the Anthropic Claude API."""

import base64
import json
import logging
import re
import threading
from collections import OrderedDict

import anthropic

from .config import AiConfig
from .models import FIELD_ALIASES, Patent, parse_date

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an expert Patent Attorney and Intellectual Property Consultant assistant.
Your role is to help users manage their patent portfolio.
You analyze patent data, suggest strategies for annuity payments, and explain technical patent terms in Traditional Chinese (zh-TW).
Always be professional, concise, and helpful.
If asked about a specific patent, refer to the provided details."""

EXTRACTION_PROMPT = """You extract structured patent bibliographic data from text or documents.

You MUST respond with ONLY a valid JSON object — no markdown, no explanation, no code fences — using these keys:
{
  "name": "<patent title, required>",
  "patentee": "<legal owner>",
  "country": "<country of filing>",
  "status": "<Active|Expired|UnderExamination>",
  "type": "<Invention|Utility|Design>",
  "appNumber": "<application number>",
  "pubNumber": "<publication or grant number>",
  "appDate": "<YYYY-MM-DD>",
  "pubDate": "<YYYY-MM-DD>",
  "duration": "<term of the patent, e.g. 2020-01-01 ~ 2040-01-01>",
  "annuityDate": "<next annuity due date, YYYY-MM-DD>",
  "annuityYear": <integer, annuity year currently pending>,
  "inventor": "<inventor names>",
  "abstract": "<abstract>"
}

Omit keys you cannot determine. Never invent values."""

# Keys the extraction may return
EXTRACTION_KEYS = [
    "name", "patentee", "country", "status", "type", "appNumber", "pubNumber",
    "appDate", "pubDate", "duration", "annuityDate", "annuityYear", "inventor", "abstract",
]

CHAT_NO_KEY = "尚未設定 API Key，無法使用 AI 功能。"
CHAT_EMPTY = "抱歉，我現在無法回答您的問題。"
CHAT_ERROR = "發生錯誤，請檢查您的網路連線或 API Key 設定。"
RISK_NO_KEY = "尚未設定 API Key。"
RISK_EMPTY = "無法生成分析報告。"
RISK_ERROR = "分析服務暫時無法使用。"

IMAGE_TYPES = ("image/png", "image/jpeg", "image/gif", "image/webp")


class PatentAssistant:
    """Answers portfolio questions and extracts patent data with Claude.

    Every public method returns a value instead of raising: answers fall back
    to fixed messages and extractions fall back to None.
    """

    def __init__(self, config: AiConfig):
        self.config = config
        self.client = None
        if config.enabled and config.api_key:
            self.client = anthropic.Anthropic(
                api_key=config.api_key,
                timeout=float(config.timeout_seconds),
                max_retries=config.max_retries,
            )
        self._conversations: OrderedDict[str, list[dict]] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def available(self) -> bool:
        return self.client is not None

    # --- Chat ---

    def chat(
        self,
        message: str,
        context_patents: list[Patent] | None = None,
        conversation_id: str = "default",
    ) -> str:
        """Answer a question, optionally about the patents currently in view.

        Args:
            message: The user's question.
            context_patents: Records summarized ahead of the question.
            conversation_id: Earlier turns of this conversation are sent along.

        Returns:
            The answer, or a fallback message if the assistant is unavailable.
        """
        if not self.available:
            return CHAT_NO_KEY

        with self._lock:
            history = list(self._conversations.get(conversation_id, []))

        try:
            content = self._build_chat_message(message, context_patents)
            answer = self._call_api(SYSTEM_PROMPT, history + [{"role": "user", "content": content}])
        except Exception as e:
            logger.error(f"Chat request failed: {e}")
            return CHAT_ERROR

        if not answer.strip():
            return CHAT_EMPTY

        self._remember(conversation_id, content, answer)
        return answer

    def reset_conversation(self, conversation_id: str = "default"):
        with self._lock:
            self._conversations.pop(conversation_id, None)

    def _build_chat_message(self, message: str, context_patents: list[Patent] | None) -> str:
        if not context_patents:
            return message
        context = "\n".join(
            f"ID: {p.id}, 名稱: {p.name}, 狀態: {p.status.value}, 國家: {p.country}, "
            f"年費到期日: {p.annuity_date.isoformat() if p.annuity_date else ''}"
            for p in context_patents
        )
        return (
            f"Here is the context of the patents I am currently viewing:\n{context}\n\n"
            f"User Question: {message}"
        )

    def _remember(self, conversation_id: str, content: str, answer: str):
        keep = max(1, self.config.history_limit) * 2
        with self._lock:
            history = self._conversations.setdefault(conversation_id, [])
            history.append({"role": "user", "content": content})
            history.append({"role": "assistant", "content": answer})
            del history[:-keep]
            self._conversations.move_to_end(conversation_id)
            while len(self._conversations) > max(1, self.config.max_conversations):
                dropped, _ = self._conversations.popitem(last=False)
                logger.debug(f"Dropped chat history for conversation {dropped}")

    # --- Risk analysis ---

    def analyze_risk(self, patent: Patent) -> str:
        """Maintenance-risk assessment of one patent, in Traditional Chinese."""
        if not self.available:
            return RISK_NO_KEY

        annuity = patent.annuity_date.isoformat() if patent.annuity_date else "未設定"
        prompt = (
            f"請針對以下專利進行維護風險評估 (繁體中文): 專利名稱: {patent.name}, "
            f"狀態: {patent.status.value}, 年費到期日: {annuity}, 年費年次: {patent.annuity_year}"
        )
        try:
            answer = self._call_api(SYSTEM_PROMPT, [{"role": "user", "content": prompt}])
        except Exception as e:
            logger.error(f"Risk analysis failed for {patent.id}: {e}")
            return RISK_ERROR

        return answer if answer.strip() else RISK_EMPTY

    # --- Extraction ---

    def parse_patent_from_text(self, text: str) -> dict | None:
        """Extract patent fields from pasted text. None if nothing usable came back."""
        if not self.available or not text or not text.strip():
            return None

        messages = [{"role": "user", "content": f"Analyze patent information into JSON: {text}"}]
        return self._extract(messages, "text")

    def parse_patent_from_file(
        self,
        data: bytes,
        mime_type: str = "application/pdf",
        filename: str = "",
    ) -> dict | None:
        """Extract patent fields from an uploaded document.

        PDFs are sent as document blocks, images as image blocks and text files
        inline. Unsupported formats give None.
        """
        if not self.available or not data:
            return None

        media_type = self._guess_media_type(data, filename, mime_type)
        source_block = self._file_block(data, media_type)
        if source_block is None:
            logger.warning(f"Unsupported file type for extraction: {media_type}")
            return None

        messages = [{
            "role": "user",
            "content": [
                source_block,
                {"type": "text", "text": "Extract patent info into JSON from this file."},
            ],
        }]
        return self._extract(messages, "file")

    def _extract(self, messages: list[dict], source: str) -> dict | None:
        try:
            response_text = self._call_api(EXTRACTION_PROMPT, messages)
        except Exception as e:
            logger.error(f"Patent extraction from {source} failed: {e}")
            return None
        return self._parse_response(response_text)

    def _file_block(self, data: bytes, media_type: str) -> dict | None:
        encoded = base64.standard_b64encode(data).decode("utf-8")
        if media_type == "application/pdf":
            return {
                "type": "document",
                "source": {"type": "base64", "media_type": media_type, "data": encoded},
            }
        if media_type in IMAGE_TYPES:
            return {
                "type": "image",
                "source": {"type": "base64", "media_type": media_type, "data": encoded},
            }
        if media_type.startswith("text/") or media_type == "application/json":
            return {"type": "text", "text": data.decode("utf-8", errors="replace")}
        return None

    def _parse_response(self, response_text: str) -> dict | None:
        """Parse Claude's JSON answer into normalized patent fields."""
        if not response_text or not response_text.strip():
            return None

        # Strategy 1: Direct JSON parse
        try:
            return self._normalize_fields(json.loads(response_text.strip()))
        except json.JSONDecodeError:
            pass

        # Strategy 2: JSON inside markdown code fences
        fence_match = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", response_text, re.DOTALL)
        if fence_match:
            try:
                return self._normalize_fields(json.loads(fence_match.group(1)))
            except json.JSONDecodeError:
                pass

        # Strategy 3: Outermost object in surrounding text
        start, end = response_text.find("{"), response_text.rfind("}")
        if start != -1 and end > start:
            try:
                return self._normalize_fields(json.loads(response_text[start:end + 1]))
            except json.JSONDecodeError:
                pass

        logger.error(f"Could not parse AI response: {response_text[:200]}")
        return None

    def _normalize_fields(self, data) -> dict | None:
        """Keep known keys, coerce types. A result without a name is no result."""
        if not isinstance(data, dict):
            return None

        snake_to_camel = {attr: key for key, attr in FIELD_ALIASES.items()}
        result = {}
        for key, value in data.items():
            key = snake_to_camel.get(key, key)
            if key not in EXTRACTION_KEYS or value is None:
                continue
            if key == "annuityYear":
                try:
                    result[key] = int(float(value))
                except (TypeError, ValueError):
                    continue
            elif key == "annuityDate":
                try:
                    parsed = parse_date(value)
                except ValueError:
                    continue
                if parsed:
                    result[key] = parsed.isoformat()
            else:
                result[key] = str(value).strip()

        if not result.get("name"):
            return None
        return result

    def _call_api(self, system: str, messages: list[dict]) -> str:
        """Make one Messages API call and return the concatenated text blocks."""
        response = self.client.messages.create(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            system=system,
            messages=messages,
        )
        return "".join(getattr(block, "text", "") or "" for block in response.content)

    def _guess_media_type(self, data: bytes, filename: str = "", default: str = "application/pdf") -> str:
        """Guess the media type from magic bytes, then filename, then the declared type."""
        if data[:5] == b"%PDF-":
            return "application/pdf"
        if data[:8] == b"\x89PNG\r\n\x1a\n":
            return "image/png"
        if data[:2] == b"\xff\xd8":
            return "image/jpeg"
        if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
            return "image/webp"
        if data[:6] in (b"GIF87a", b"GIF89a"):
            return "image/gif"

        ext = filename.lower().rsplit(".", 1)[-1] if "." in filename else ""
        ext_map = {
            "pdf": "application/pdf",
            "png": "image/png",
            "jpg": "image/jpeg",
            "jpeg": "image/jpeg",
            "webp": "image/webp",
            "gif": "image/gif",
            "txt": "text/plain",
            "csv": "text/csv",
            "json": "application/json",
        }
        if ext in ext_map:
            return ext_map[ext]
        return default or "application/octet-stream"
