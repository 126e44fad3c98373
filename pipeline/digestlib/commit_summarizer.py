"""Hierarchical commit summarization with deterministic fallbacks.

Three tiers are produced bottom-up in one run:

	leaf	one summary per diff chunk
	commit	one summary per commit, merged from its leaves
	window	one weekly report, merged from every commit summary

Commits are pulled from a FIFO queue one at a time and each LLM call is
resolved (answer or fallback) before the next one is issued, so at most one
request is ever in flight. A failed call never aborts the run: the tier that
failed is rebuilt from the tier below it and labelled as a fallback.
"""

# Standard Library
import collections
import enum
from dataclasses import dataclass
from dataclasses import field

# local repo modules
from digestlib import prompt_loader


LEAF = "leaf"
COMMIT = "commit"
WINDOW = "window"

ORIGIN_LLM = "llm"
ORIGIN_FALLBACK = "fallback"
ORIGIN_PLACEHOLDER = "placeholder"

NO_CONTENT_SUMMARY = (
	"(No material content to summarize: the commit was empty or only touched "
	"excluded paths such as lockfiles, build output or minified bundles.)"
)
PART_SEPARATOR = "\n\n"
COMMIT_SEPARATOR = "\n\n---\n\n"
EMPTY_RESPONSE = "empty response"


#============================================
class CommitState(enum.Enum):
	PENDING = "pending"
	LEAF_SUMMARIZED = "leaf_summarized"
	COMMIT_MERGED = "commit_merged"


#============================================
@dataclass(frozen=True)
class SummaryNode:
	tier: str
	text: str
	origin: str = ORIGIN_LLM
	position: int = 0

	@property
	def fallback(self) -> bool:
		return self.origin != ORIGIN_LLM


#============================================
@dataclass
class CommitSummary:
	commit: object
	chunks: list[str]
	leaves: list[SummaryNode] = field(default_factory=list)
	node: SummaryNode | None = None
	state: CommitState = CommitState.PENDING

	@property
	def text(self) -> str:
		return self.node.text if self.node is not None else ""


#============================================
@dataclass
class WeeklyReport:
	window_label: str
	node: SummaryNode
	commits: list[CommitSummary]

	@property
	def text(self) -> str:
		return self.node.text

	#============================================
	def count_origin(self, origin: str) -> int:
		"""
		Count nodes of every tier that came from origin.
		"""
		nodes = [self.node]
		for summary in self.commits:
			nodes.extend(summary.leaves)
			if summary.node is not None:
				nodes.append(summary.node)
		return sum(1 for node in nodes if node.origin == origin)


#============================================
def format_branches(branches) -> str:
	return ", ".join(branches) if branches else "(none)"


#============================================
def commit_prompt_values(commit) -> dict[str, str]:
	"""
	Template values describing one commit.
	"""
	return {
		"commit_id": commit.id,
		"commit_title": commit.title,
		"commit_author": commit.author,
		"commit_branches": format_branches(commit.branches),
		"commit_link": commit.link,
	}


#============================================
def commit_heading(commit, include_author: bool = True) -> str:
	"""
	One-line header used when commit summaries are stacked together.
	"""
	parts = [f"[{commit.id[:7]}] {commit.title}"]
	if include_author:
		parts.append(commit.author)
	parts.append(format_branches(commit.branches))
	return " - ".join(parts)


#============================================
def join_leaf_summaries(leaves: list[SummaryNode]) -> str:
	"""
	Concatenate leaf texts in order under [Part i/n] delimiters.
	"""
	total = len(leaves)
	blocks = []
	for leaf in leaves:
		blocks.append(f"[Part {leaf.position}/{total}]\n{leaf.text}")
	return PART_SEPARATOR.join(blocks)


#============================================
def join_commit_summaries(summaries: list[CommitSummary], include_author: bool = True) -> str:
	"""
	Concatenate commit summaries in order, each under its commit header.
	"""
	blocks = []
	for summary in summaries:
		blocks.append(f"{commit_heading(summary.commit, include_author)}\n{summary.text}")
	return COMMIT_SEPARATOR.join(blocks)


#============================================
class HierarchicalSummarizer:
	"""
	Drive leaf, commit and window summaries through one LLM client.
	"""

	def __init__(self, client, max_tokens: int = 2048, log_fn=None):
		self.client = client
		self.max_tokens = int(max_tokens)
		self.log_fn = log_fn

	#============================================
	def log(self, message: str) -> None:
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def _call(self, prompt: str, purpose: str) -> tuple[str, str]:
		"""
		Issue one request; return (text, failure reason).

		Exactly one of the two is non-empty. An empty answer is reported as
		a failure so the caller falls back.
		"""
		try:
			text = self.client.generate(
				prompt=prompt,
				purpose=purpose,
				max_tokens=self.max_tokens,
			)
		except Exception as error:
			reason = f"{error.__class__.__name__}: {error}"
			self.log(f"LLM call failed ({purpose}): {reason}")
			return "", reason
		text = (text or "").strip()
		if not text:
			self.log(f"LLM call returned empty text ({purpose})")
			return "", EMPTY_RESPONSE
		return text, ""

	#============================================
	def summarize_leaves(self, summary: CommitSummary) -> None:
		"""
		Resolve one leaf per chunk, strictly in order.
		"""
		commit = summary.commit
		total = len(summary.chunks)
		template = prompt_loader.load_prompt("commit_chunk_summary.txt")
		leaves = []
		for index, chunk in enumerate(summary.chunks, start=1):
			values = commit_prompt_values(commit)
			values["part_index"] = str(index)
			values["part_total"] = str(total)
			values["chunk_text"] = chunk
			prompt = prompt_loader.render_prompt(template, values)
			text, reason = self._call(prompt, f"commit {commit.id[:7]} part {index}/{total}")
			if text:
				leaves.append(SummaryNode(LEAF, text, ORIGIN_LLM, index))
			elif reason == EMPTY_RESPONSE:
				leaves.append(SummaryNode(LEAF, f"(Part {index}/{total} summary was empty)", ORIGIN_FALLBACK, index))
			else:
				leaves.append(SummaryNode(LEAF, f"(Part {index}/{total} summary failed: {reason})", ORIGIN_FALLBACK, index))
		summary.leaves = leaves
		summary.state = CommitState.LEAF_SUMMARIZED

	#============================================
	def merge_commit(self, summary: CommitSummary) -> None:
		"""
		Merge resolved leaves into the commit summary.
		"""
		if summary.state is not CommitState.LEAF_SUMMARIZED:
			raise RuntimeError(f"cannot merge commit in state {summary.state.value}")
		commit = summary.commit
		template = prompt_loader.load_prompt("commit_merge_summary.txt")
		values = commit_prompt_values(commit)
		values["part_total"] = str(len(summary.leaves))
		values["part_summaries"] = join_leaf_summaries(summary.leaves)
		prompt = prompt_loader.render_prompt(template, values)
		text, reason = self._call(prompt, f"commit {commit.id[:7]} merge")
		if text:
			summary.node = SummaryNode(COMMIT, text, ORIGIN_LLM)
		else:
			self.log(f"Commit {commit.id[:7]}: merge fell back to joined part summaries ({reason})")
			summary.node = SummaryNode(COMMIT, join_leaf_summaries(summary.leaves), ORIGIN_FALLBACK)
		summary.state = CommitState.COMMIT_MERGED

	#============================================
	def summarize_commit(self, commit, chunks: list[str]) -> CommitSummary:
		"""
		Take one commit from PENDING to COMMIT_MERGED.
		"""
		summary = CommitSummary(commit=commit, chunks=list(chunks))
		if not summary.chunks:
			self.log(f"Commit {commit.id[:7]}: no material content, using placeholder")
			summary.node = SummaryNode(COMMIT, NO_CONTENT_SUMMARY, ORIGIN_PLACEHOLDER)
			summary.state = CommitState.COMMIT_MERGED
			return summary
		self.log(f"Commit {commit.id[:7]}: summarizing {len(summary.chunks)} part(s)")
		self.summarize_leaves(summary)
		self.merge_commit(summary)
		return summary

	#============================================
	def merge_window(self, window_label: str, repo_name: str, summaries: list[CommitSummary]) -> SummaryNode:
		"""
		Merge every commit summary into the weekly report node.
		"""
		if not summaries:
			return SummaryNode(WINDOW, f"{window_label}: no commits in this window.", ORIGIN_PLACEHOLDER)
		template = prompt_loader.load_prompt("weekly_merge_summary.txt")
		prompt = prompt_loader.render_prompt(template, {
			"window_label": window_label,
			"repo_name": repo_name or "repository",
			"commit_summaries": join_commit_summaries(summaries),
		})
		text, reason = self._call(prompt, f"weekly merge {window_label}")
		if text:
			return SummaryNode(WINDOW, text, ORIGIN_LLM)
		self.log(f"Weekly merge fell back to joined commit summaries ({reason})")
		header = (
			f"(Weekly summary for {window_label} failed: {reason}. "
			"Degraded output: per-commit summaries joined in order.)"
		)
		body = join_commit_summaries(summaries, include_author=False)
		return SummaryNode(WINDOW, f"{header}\n\n{body}", ORIGIN_FALLBACK)

	#============================================
	def summarize_window(
		self,
		window_label: str,
		repo_name: str,
		commits: list,
		load_chunks,
	) -> WeeklyReport:
		"""
		Summarize every commit in order, then merge them into the report.

		Args:
			window_label: human-readable week label.
			repo_name: repository name shown in the report.
			commits: Commit values, oldest first.
			load_chunks: callable returning the ordered chunks of one commit.

		Returns:
			WeeklyReport whose text is never empty.
		"""
		queue = collections.deque(commits)
		summaries = []
		while queue:
			commit = queue.popleft()
			chunks = load_chunks(commit)
			summaries.append(self.summarize_commit(commit, chunks))
		node = self.merge_window(window_label, repo_name, summaries)
		return WeeklyReport(window_label=window_label, node=node, commits=summaries)
