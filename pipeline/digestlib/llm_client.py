"""
OpenAI-compatible chat completions client.
"""

from __future__ import annotations

# Standard Library
import urllib.parse

# PIP3 modules
import requests


#============================================
class SummarizationError(RuntimeError):
	"""
	Base class for summarization service failures.
	"""


#============================================
class TransportUnavailableError(SummarizationError):
	"""
	Raised when the service cannot be reached.
	"""


#============================================
class ServiceStatusError(SummarizationError):
	"""
	Raised when the service answers with a non-success status.
	"""

	def __init__(self, status_code: int, body: str):
		self.status_code = status_code
		self.body = body
		super().__init__(f"chat completions HTTP {status_code}: {body[:500]}")


#============================================
class MalformedResponseError(SummarizationError):
	"""
	Raised when the response body has no usable assistant text.
	"""


class ChatCompletionsClient:
	name = "ChatCompletions"

	def __init__(
		self,
		api_key: str,
		model: str,
		base_url: str = "https://models.github.ai/inference",
		api_version: str = "",
		temperature: float = 0.2,
		timeout_seconds: float = 120,
		session: requests.Session | None = None,
		log_fn=None,
	) -> None:
		self.api_key = api_key
		self.model = model
		self.base_url = base_url.rstrip("/")
		self.api_version = api_version
		self.temperature = float(temperature)
		self.timeout_seconds = timeout_seconds
		self.session = session or requests.Session()
		self.log_fn = log_fn

	def _validated_endpoint(self) -> str:
		"""
		Build and validate the chat completions endpoint URL.
		"""
		parsed = urllib.parse.urlparse(self.base_url)
		if parsed.scheme not in {"http", "https"}:
			raise TransportUnavailableError("LLM base_url must use http or https.")
		if not parsed.netloc:
			raise TransportUnavailableError("LLM base_url must include a host.")
		if self.api_version:
			# Azure style deployment route
			model_path = urllib.parse.quote(self.model, safe="")
			query = urllib.parse.urlencode({"api-version": self.api_version})
			return f"{parsed.scheme}://{parsed.netloc}/openai/deployments/{model_path}/chat/completions?{query}"
		return urllib.parse.urljoin(self.base_url + "/", "chat/completions")

	def _headers(self) -> dict[str, str]:
		return {
			"Content-Type": "application/json",
			"Authorization": f"Bearer {self.api_key}",
			"api-key": self.api_key,
		}

	def _extract_content(self, response: requests.Response) -> str:
		try:
			parsed = response.json()
		except ValueError as exc:
			raise MalformedResponseError("chat completions returned invalid JSON") from exc
		try:
			content = parsed["choices"][0]["message"]["content"]
		except (KeyError, IndexError, TypeError) as exc:
			raise MalformedResponseError("chat completions response has no choices[0].message.content") from exc
		if not isinstance(content, str) or not content.strip():
			raise MalformedResponseError("chat completions returned empty content")
		return content.strip()

	def generate(self, prompt: str, *, purpose: str, max_tokens: int) -> str:
		payload: dict[str, object] = {
			"model": self.model,
			"messages": [{"role": "user", "content": prompt}],
			"temperature": self.temperature,
			"max_tokens": max_tokens,
		}
		endpoint = self._validated_endpoint()
		if self.log_fn is not None:
			self.log_fn(f"LLM request: {purpose} ({len(prompt)} chars)")
		try:
			response = self.session.post(
				endpoint,
				json=payload,
				headers=self._headers(),
				timeout=self.timeout_seconds,
			)
		except requests.RequestException as exc:
			raise TransportUnavailableError(f"chat completions unreachable: {exc}") from exc
		if response.status_code < 200 or response.status_code >= 300:
			raise ServiceStatusError(response.status_code, response.text or "")
		return self._extract_content(response)
