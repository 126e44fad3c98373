"""Deliver the weekly report to a chat webhook or to stdout."""

# PIP3 modules
import requests


#============================================
class DispatchError(RuntimeError):
	"""
	Raised when the notification webhook rejects or never receives a report.
	"""


#============================================
def build_webhook_payload(text: str) -> dict:
	"""
	Build a Lark/Feishu custom-bot text message payload.
	"""
	return {"msg_type": "text", "content": {"text": text}}


#============================================
def post_to_webhook(text: str, webhook_url: str, timeout_seconds: float = 30) -> None:
	"""
	POST the report and raise DispatchError on any delivery failure.
	"""
	try:
		response = requests.post(
			webhook_url,
			json=build_webhook_payload(text),
			timeout=timeout_seconds,
		)
	except requests.RequestException as error:
		raise DispatchError(f"Webhook unreachable: {error}") from error
	if response.status_code < 200 or response.status_code >= 300:
		raise DispatchError(f"Webhook HTTP {response.status_code}: {response.text[:500]}")
	try:
		body = response.json()
	except ValueError:
		return
	# Lark answers HTTP 200 with a non-zero code for rejected messages
	if isinstance(body, dict):
		code = body.get("code", body.get("StatusCode", 0))
		if code not in (0, None):
			message = body.get("msg") or body.get("StatusMessage") or ""
			raise DispatchError(f"Webhook rejected report: code={code} {message}".rstrip())


#============================================
def dispatch_report(text: str, webhook_url: str = "", timeout_seconds: float = 30, log_fn=None) -> bool:
	"""
	Send the report, or print it when no webhook is configured.

	Returns:
		True when the report was posted, False when it was printed.
	"""
	if not webhook_url:
		if log_fn:
			log_fn("No webhook configured; printing the final report")
		print(text, flush=True)
		return False
	post_to_webhook(text, webhook_url, timeout_seconds=timeout_seconds)
	if log_fn:
		log_fn("Wrote report to webhook")
	return True
