"""Tests for pipeline/digestlib/commit_summarizer.py."""

# Standard Library
import os
import sys

import pytest

# add pipeline directory to path for digestlib imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "pipeline"))

from digestlib import commit_collector
from digestlib import commit_summarizer


#============================================
class ScriptedClient:
	"""
	Fake LLM client answering by purpose prefix; records every call.
	"""

	def __init__(self, fail_on=(), empty_on=()):
		self.fail_on = tuple(fail_on)
		self.empty_on = tuple(empty_on)
		self.calls = []

	def generate(self, prompt=None, purpose=None, max_tokens=0):
		self.calls.append((purpose, prompt))
		if any(purpose.startswith(prefix) for prefix in self.fail_on):
			raise RuntimeError(f"boom on {purpose}")
		if any(purpose.startswith(prefix) for prefix in self.empty_on):
			return "   "
		return f"summary for {purpose}"


#============================================
class AlwaysFailingClient:
	def __init__(self):
		self.call_count = 0

	def generate(self, prompt=None, purpose=None, max_tokens=0):
		self.call_count += 1
		raise ConnectionError("service down")


#============================================
def make_commit(commit_id: str, title: str = "Add feature", branches=("origin/main",)):
	return commit_collector.Commit(
		id=commit_id,
		title=title,
		author="Dana",
		link=f"https://github.com/org/app/commit/{commit_id}",
		branches=tuple(branches),
	)


#============================================
def test_chunks_summarized_in_order_then_merged() -> None:
	"""
	Each chunk gets one call in order, then one merge call.
	"""
	client = ScriptedClient()
	summarizer = commit_summarizer.HierarchicalSummarizer(client)
	summary = summarizer.summarize_commit(make_commit("aaaaaaa111"), ["one", "two", "three"])
	purposes = [purpose for purpose, _ in client.calls]
	assert purposes == [
		"commit aaaaaaa part 1/3",
		"commit aaaaaaa part 2/3",
		"commit aaaaaaa part 3/3",
		"commit aaaaaaa merge",
	]
	assert summary.state is commit_summarizer.CommitState.COMMIT_MERGED
	assert [leaf.position for leaf in summary.leaves] == [1, 2, 3]
	assert summary.node.origin == commit_summarizer.ORIGIN_LLM
	assert summary.text == "summary for commit aaaaaaa merge"


#============================================
def test_chunk_prompt_carries_metadata_and_position() -> None:
	"""
	Leaf prompts embed commit metadata, position and the chunk text.
	"""
	client = ScriptedClient()
	summarizer = commit_summarizer.HierarchicalSummarizer(client)
	summarizer.summarize_commit(make_commit("bbbbbbb222", branches=("origin/a", "origin/b")), ["PAYLOAD {{commit_id}}"])
	prompt = client.calls[0][1]
	assert "bbbbbbb222" in prompt
	assert "Add feature" in prompt
	assert "origin/a, origin/b" in prompt
	assert "(1/1)" in prompt
	# payload tokens are not expanded
	assert "PAYLOAD {{commit_id}}" in prompt


#============================================
def test_merge_prompt_lists_leaves_in_order() -> None:
	"""
	The merge request carries every leaf summary in order.
	"""
	client = ScriptedClient()
	summarizer = commit_summarizer.HierarchicalSummarizer(client)
	summarizer.summarize_commit(make_commit("ccccccc333"), ["one", "two"])
	merge_prompt = client.calls[-1][1]
	first = merge_prompt.index("[Part 1/2]\nsummary for commit ccccccc part 1/2")
	second = merge_prompt.index("[Part 2/2]\nsummary for commit ccccccc part 2/2")
	assert first < second


#============================================
def test_failed_chunk_becomes_labelled_fallback() -> None:
	"""
	One failing chunk does not stop the others.
	"""
	client = ScriptedClient(fail_on=("commit ddddddd part 2/3",))
	summarizer = commit_summarizer.HierarchicalSummarizer(client)
	summary = summarizer.summarize_commit(make_commit("ddddddd444"), ["one", "two", "three"])
	assert len(summary.leaves) == 3
	leaf = summary.leaves[1]
	assert leaf.origin == commit_summarizer.ORIGIN_FALLBACK
	assert "Part 2/3" in leaf.text
	assert "boom on commit ddddddd part 2/3" in leaf.text
	assert summary.leaves[2].origin == commit_summarizer.ORIGIN_LLM
	assert summary.node.origin == commit_summarizer.ORIGIN_LLM


#============================================
def test_empty_chunk_answer_is_flagged() -> None:
	"""
	An empty answer yields an explicit empty-part fallback.
	"""
	client = ScriptedClient(empty_on=("commit eeeeeee part",))
	summarizer = commit_summarizer.HierarchicalSummarizer(client)
	summary = summarizer.summarize_commit(make_commit("eeeeeee555"), ["one"])
	assert summary.leaves[0].text == "(Part 1/1 summary was empty)"
	assert summary.leaves[0].fallback


#============================================
def test_failed_merge_joins_leaves_with_delimiters() -> None:
	"""
	A failed merge falls back to the ordered, delimited leaf texts.
	"""
	client = ScriptedClient(fail_on=("commit fffffff merge",))
	summarizer = commit_summarizer.HierarchicalSummarizer(client)
	summary = summarizer.summarize_commit(make_commit("fffffff666"), ["one", "two"])
	assert summary.node.origin == commit_summarizer.ORIGIN_FALLBACK
	assert summary.text == (
		"[Part 1/2]\nsummary for commit fffffff part 1/2\n\n"
		"[Part 2/2]\nsummary for commit fffffff part 2/2"
	)


#============================================
def test_no_chunks_uses_placeholder_without_calls() -> None:
	"""
	A commit with no content never reaches the LLM.
	"""
	client = ScriptedClient()
	summarizer = commit_summarizer.HierarchicalSummarizer(client)
	summary = summarizer.summarize_commit(make_commit("0000000777"), [])
	assert client.calls == []
	assert summary.text == commit_summarizer.NO_CONTENT_SUMMARY
	assert summary.node.origin == commit_summarizer.ORIGIN_PLACEHOLDER
	assert summary.leaves == []
	assert summary.state is commit_summarizer.CommitState.COMMIT_MERGED


#============================================
def test_merge_requires_resolved_leaves() -> None:
	"""
	Merging a pending commit is a programming error.
	"""
	summarizer = commit_summarizer.HierarchicalSummarizer(ScriptedClient())
	pending = commit_summarizer.CommitSummary(commit=make_commit("1111111888"), chunks=["x"])
	with pytest.raises(RuntimeError):
		summarizer.merge_commit(pending)


#============================================
def test_window_merge_success_in_chronological_order() -> None:
	"""
	The weekly prompt lists commits in the order they were given.
	"""
	client = ScriptedClient()
	summarizer = commit_summarizer.HierarchicalSummarizer(client)
	commits = [make_commit("aaaaaaa001", "First"), make_commit("bbbbbbb002", "Second")]
	chunks = {"aaaaaaa001": ["a"], "bbbbbbb002": ["b"]}
	report = summarizer.summarize_window(
		"2026-10-12 ~ 2026-10-18", "org/app", commits, lambda commit: chunks[commit.id],
	)
	assert report.node.origin == commit_summarizer.ORIGIN_LLM
	assert report.text == "summary for weekly merge 2026-10-12 ~ 2026-10-18"
	weekly_prompt = client.calls[-1][1]
	assert "2026-10-12 ~ 2026-10-18" in weekly_prompt
	assert "org/app" in weekly_prompt
	assert weekly_prompt.index("[aaaaaaa] First - Dana - origin/main") < weekly_prompt.index("[bbbbbbb] Second")
	# commits are fully resolved one after another
	purposes = [purpose for purpose, _ in client.calls]
	assert purposes.index("commit aaaaaaa merge") < purposes.index("commit bbbbbbb part 1/1")


#============================================
def test_window_merge_failure_is_labelled_degraded() -> None:
	"""
	A failed weekly merge concatenates commit summaries with headers.
	"""
	client = ScriptedClient(fail_on=("weekly merge",))
	summarizer = commit_summarizer.HierarchicalSummarizer(client)
	commits = [
		make_commit("aaaaaaa001", "First", ("origin/a",)),
		make_commit("bbbbbbb002", "Second", ("origin/a", "origin/b")),
	]
	report = summarizer.summarize_window("W", "", commits, lambda commit: ["chunk"])
	assert report.node.origin == commit_summarizer.ORIGIN_FALLBACK
	text = report.text
	assert text.startswith("(Weekly summary for W failed:")
	assert "Degraded output" in text
	assert "[aaaaaaa] First - origin/a\nsummary for commit aaaaaaa merge" in text
	assert "[bbbbbbb] Second - origin/a, origin/b" in text
	assert "\n\n---\n\n" in text


#============================================
def test_always_failing_client_still_produces_report() -> None:
	"""
	Total service failure still yields a non-empty fallback report.
	"""
	client = AlwaysFailingClient()
	summarizer = commit_summarizer.HierarchicalSummarizer(client)
	commits = [make_commit("aaaaaaa001"), make_commit("bbbbbbb002"), make_commit("ccccccc003")]
	chunks = {"aaaaaaa001": ["x", "y"], "bbbbbbb002": [], "ccccccc003": ["z"]}
	report = summarizer.summarize_window("W", "org/app", commits, lambda commit: chunks[commit.id])
	# 2 + 1 leaves, 2 merges, 1 weekly merge
	assert client.call_count == 6
	assert report.text.strip()
	assert report.node.fallback
	for summary in report.commits:
		assert summary.node.fallback
		assert all(leaf.fallback for leaf in summary.leaves)
	assert "ConnectionError: service down" in report.text
	assert commit_summarizer.NO_CONTENT_SUMMARY in report.text
	assert report.count_origin(commit_summarizer.ORIGIN_LLM) == 0
	assert report.count_origin(commit_summarizer.ORIGIN_PLACEHOLDER) == 1


#============================================
def test_empty_commit_list_still_yields_text() -> None:
	"""
	Merging nothing produces a placeholder rather than an empty report.
	"""
	summarizer = commit_summarizer.HierarchicalSummarizer(ScriptedClient())
	report = summarizer.summarize_window("W", "", [], lambda commit: [])
	assert report.text == "W: no commits in this window."


#============================================
def test_token_text_in_commit_title_is_not_expanded() -> None:
	"""
	A commit title containing {{chunk_text}} is sent literally, not replaced by the diff.
	"""
	client = ScriptedClient()
	summarizer = commit_summarizer.HierarchicalSummarizer(client)
	commit = make_commit("1234567abcdef", title="Document {{chunk_text}} and {{part_index}}")
	summarizer.summarize_commit(commit, ["diff --git a/x b/x\n+SECRET_DIFF_LINE"])
	leaf_prompt = client.calls[0][1]
	assert "Document {{chunk_text}} and {{part_index}}" in leaf_prompt
	assert leaf_prompt.count("SECRET_DIFF_LINE") == 1
