"""Run one weekly digest: collect, chunk, summarize and dispatch."""

# Standard Library
from datetime import datetime
from datetime import timezone

# local repo modules
from digestlib import change_retriever
from digestlib import commit_collector
from digestlib import commit_summarizer
from digestlib import diff_chunker
from digestlib import git_repo
from digestlib import report_dispatch
from digestlib import week_window


#============================================
def _log(log_fn, message: str) -> None:
	if log_fn is not None:
		log_fn(message)


#============================================
def refresh_remotes_softly(git, log_fn=None) -> None:
	"""
	Fetch remotes, continuing with local refs when the fetch fails.
	"""
	try:
		git.refresh_remotes()
	except git_repo.GitError as error:
		_log(log_fn, f"Skipping remote refresh, fetch failed: {error}")


#============================================
def make_chunk_loader(git, config, log_fn=None):
	"""
	Build the per-commit chunk loader used by the summarizer queue.
	"""
	def _load_chunks(commit) -> list[str]:
		diff_text = change_retriever.retrieve_change(git, commit.id, config.excludes)
		chunks = diff_chunker.chunk_diff(diff_text, config.chunk_max_chars)
		_log(log_fn, f"Commit {commit.short_id}: {len(diff_text)} diff chars in {len(chunks)} chunk(s)")
		return chunks

	return _load_chunks


#============================================
def run_weekly_digest(
	config,
	git,
	client,
	now: datetime | None = None,
	fetch_remotes: bool | None = None,
	send: bool = True,
	log_fn=None,
):
	"""
	Produce and deliver the report for the week containing now.

	Args:
		config: DigestConfig for this run.
		git: GitRepo-like collaborator.
		client: LLM client exposing generate(prompt, purpose, max_tokens).
		now: current instant, defaults to the wall clock.
		fetch_remotes: override config.fetch_remotes.
		send: when False the report is printed instead of posted.
		log_fn: optional callable for progress logging.

	Returns:
		WeeklyReport, or None when the window has no commits.
	"""
	tz = week_window.resolve_timezone(config.timezone, log_fn)
	value = now or datetime.now(timezone.utc)
	window = week_window.resolve_week_window(value, tz)
	_log(log_fn, f"Window: {window.label} ({window.start.isoformat()} to {window.end.isoformat()})")

	if config.fetch_remotes if fetch_remotes is None else fetch_remotes:
		refresh_remotes_softly(git, log_fn)
	branches = git.list_remote_branches()
	_log(log_fn, f"Tracking {len(branches)} remote branch(es)")

	commits = commit_collector.collect_commits(
		git,
		branches,
		window,
		config.per_branch_limit,
		repo=config.repo,
		server_url=config.server_url,
		log_fn=log_fn,
	)
	if not commits:
		_log(log_fn, "No commits on any tracked branch this week; skipping report")
		return None

	summarizer = commit_summarizer.HierarchicalSummarizer(
		client,
		max_tokens=config.max_tokens,
		log_fn=log_fn,
	)
	report = summarizer.summarize_window(
		window.label,
		config.repo,
		commits,
		make_chunk_loader(git, config, log_fn),
	)
	fallback_count = report.count_origin(commit_summarizer.ORIGIN_FALLBACK)
	if fallback_count:
		_log(log_fn, f"Report built with {fallback_count} fallback summary node(s)")

	webhook_url = config.webhook_url if send else ""
	report_dispatch.dispatch_report(
		report.text,
		webhook_url,
		timeout_seconds=config.notify_timeout_seconds,
		log_fn=log_fn,
	)
	return report
