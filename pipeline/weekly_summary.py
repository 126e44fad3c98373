#!/usr/bin/env python3
"""Summarize this week's commits across all remote branches and post the report.

Collects non-merge commits from every origin/* branch for the current
Monday-to-Sunday week, summarizes each commit's diff in chunks with an LLM,
merges everything into one weekly report and posts it to a chat webhook
(or prints it when no webhook is configured).
"""

# Standard Library
import argparse
import os
import sys
from datetime import datetime

# PIP3 modules
import rich.console

# local repo modules
from digestlib import git_repo
from digestlib import llm_client
from digestlib import pipeline_settings
from digestlib import week_window
from digestlib import weekly_digest


RICH_CONSOLE = rich.console.Console(stderr=True)


#============================================
def log_step(message: str) -> None:
	"""
	Print one timestamped progress line.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	line = f"[weekly_summary {now_text}] {message}"
	lower = message.lower()
	style = "cyan"
	if ("failed" in lower) or ("error" in lower) or ("missing" in lower):
		style = "bold red"
	elif ("fallback" in lower) or ("fell back" in lower) or ("falling back" in lower) or ("skipping" in lower) or ("placeholder" in lower):
		style = "yellow"
	elif ("wrote " in lower) or ("collected" in lower) or ("complete" in lower):
		style = "green"
	RICH_CONSOLE.print(line, style=style, markup=False, highlight=False)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Summarize this week's commits across remote branches with an LLM."
	)
	parser.add_argument(
		"--settings",
		default="settings.yaml",
		help="YAML settings path for defaults (missing file means defaults + environment).",
	)
	parser.add_argument(
		"--repo-path",
		dest="repo_path",
		default=".",
		help="Path to the git working tree to summarize (default: cwd).",
	)
	parser.add_argument(
		"--now",
		default=None,
		type=parse_now_arg,
		help="ISO 8601 instant to use as 'now'; naive values are read in the digest time zone.",
	)
	parser.add_argument(
		"--no-fetch",
		dest="fetch",
		action="store_false",
		help="Skip 'git fetch --all' and use local remote-tracking refs as they are.",
	)
	parser.set_defaults(fetch=None)
	parser.add_argument(
		"--no-send",
		dest="send",
		action="store_false",
		help="Print the report instead of posting it to the webhook.",
	)
	parser.set_defaults(send=True)
	parser.add_argument(
		"--output",
		default="",
		help="Optional path to also write the final report text.",
	)
	args = parser.parse_args(argv)
	return args


#============================================
def parse_now_arg(value: str) -> datetime:
	"""
	argparse type for --now; accepts ISO 8601 with or without an offset.
	"""
	text = (value or "").strip()
	try:
		return datetime.fromisoformat(text.replace("Z", "+00:00"))
	except ValueError as error:
		raise argparse.ArgumentTypeError(f"invalid ISO 8601 instant: {value!r}") from error


#============================================
def localize_now(value: datetime | None, timezone_name: str) -> datetime | None:
	"""
	Attach the digest zone to a naive --now value.
	"""
	if value is None:
		return None
	if value.tzinfo is None:
		return value.replace(tzinfo=week_window.resolve_timezone(timezone_name))
	return value


#============================================
def write_report(path_text: str, text: str) -> None:
	"""
	Write the final report text to one file.
	"""
	directory = os.path.dirname(os.path.abspath(path_text))
	os.makedirs(directory, exist_ok=True)
	with open(path_text, "w", encoding="utf-8") as handle:
		handle.write(text)
		handle.write("\n")


#============================================
def main(argv: list[str] | None = None) -> None:
	"""
	Run the weekly digest.
	"""
	args = parse_args(argv)
	settings, settings_path = pipeline_settings.load_settings(args.settings)
	log_step(f"Using settings file: {settings_path}")
	try:
		config = pipeline_settings.build_config(settings)
	except pipeline_settings.ConfigError as error:
		log_step(f"Configuration error: {error}")
		sys.exit(1)

	now = localize_now(args.now, config.timezone)
	git = git_repo.GitRepo(
		args.repo_path,
		remote=config.remote,
		timezone_name=config.timezone,
	)
	client = llm_client.ChatCompletionsClient(
		api_key=config.api_key,
		model=config.model,
		base_url=config.base_url,
		api_version=config.api_version,
		temperature=config.temperature,
		timeout_seconds=config.llm_timeout_seconds,
		log_fn=log_step,
	)
	log_step(f"Model: {config.model}, chunk limit: {config.chunk_max_chars} chars")

	report = weekly_digest.run_weekly_digest(
		config,
		git,
		client,
		now=now,
		fetch_remotes=args.fetch,
		send=args.send,
		log_fn=log_step,
	)
	if report is None:
		return
	if args.output:
		write_report(args.output, report.text)
		log_step(f"Wrote {os.path.abspath(args.output)}")
	log_step("Weekly summary complete.")


if __name__ == "__main__":
	main()
