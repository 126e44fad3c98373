"""Collect the week's commits across all tracked remote branches.

Each branch is scanned on its own to learn which branches a commit is
reachable from. A second pass over the union of all history gives one
global oldest-first order and drops commits seen on several branches more
than once.
"""

# Standard Library
from dataclasses import dataclass

# local repo modules
from digestlib import week_window


DEFAULT_SERVER_URL = "https://github.com"


#============================================
@dataclass(frozen=True)
class Commit:
	id: str
	title: str
	author: str
	link: str
	branches: tuple[str, ...]

	@property
	def short_id(self) -> str:
		return self.id[:7]


#============================================
class AttributionMap:
	"""
	Commit id to branch-name set, written once then frozen.
	"""

	def __init__(self):
		self._branches: dict[str, set[str]] = {}
		self._frozen = False

	#============================================
	def add(self, commit_id: str, branch: str) -> None:
		if self._frozen:
			raise RuntimeError("AttributionMap is frozen")
		self._branches.setdefault(commit_id, set()).add(branch)

	#============================================
	def freeze(self) -> "AttributionMap":
		self._frozen = True
		return self

	#============================================
	@property
	def frozen(self) -> bool:
		return self._frozen

	#============================================
	def branches_for(self, commit_id: str) -> tuple[str, ...]:
		"""
		Return the sorted branch names for one commit id.
		"""
		return tuple(sorted(self._branches.get(commit_id, ())))

	def __contains__(self, commit_id) -> bool:
		return commit_id in self._branches

	def __len__(self) -> int:
		return len(self._branches)


#============================================
def cap_recent(commit_ids: list[str], limit: int) -> list[str]:
	"""
	Keep the most recent limit ids of an oldest-first list.

	A limit of zero or less keeps everything.
	"""
	if limit <= 0 or len(commit_ids) <= limit:
		return list(commit_ids)
	return commit_ids[-limit:]


#============================================
def build_attribution_map(branch_commits: dict[str, list[str]]) -> AttributionMap:
	"""
	Union per-branch scans into a frozen attribution map.
	"""
	attribution = AttributionMap()
	for branch, commit_ids in branch_commits.items():
		for commit_id in commit_ids:
			attribution.add(commit_id, branch)
	return attribution.freeze()


#============================================
def order_tracked_commits(all_commit_ids: list[str], attribution: AttributionMap) -> list[str]:
	"""
	Walk the global oldest-first union, keeping first sightings of tracked ids.
	"""
	seen = set()
	ordered = []
	for commit_id in all_commit_ids:
		if commit_id in seen:
			continue
		if commit_id not in attribution:
			continue
		seen.add(commit_id)
		ordered.append(commit_id)
	return ordered


#============================================
def build_commit_link(commit_id: str, repo: str, server_url: str = DEFAULT_SERVER_URL) -> str:
	"""
	Build the web link for one commit.
	"""
	base = (server_url or DEFAULT_SERVER_URL).rstrip("/")
	repo_value = (repo or "").strip().strip("/")
	if repo_value:
		return f"{base}/{repo_value}/commit/{commit_id}"
	return f"{base}/commit/{commit_id}"


#============================================
def collect_commits(
	git,
	branches: list[str],
	window: week_window.Window,
	per_branch_limit: int,
	repo: str = "",
	server_url: str = DEFAULT_SERVER_URL,
	log_fn=None,
) -> list[Commit]:
	"""
	Produce the deduplicated, chronologically ordered commits of a window.

	Args:
		git: GitRepo-like collaborator.
		branches: tracked remote branch names.
		window: reporting week.
		per_branch_limit: cap on commits kept per branch (most recent win).
		repo: owner/name used to build links.
		server_url: web host used to build links.
		log_fn: optional callable for progress logging.

	Returns:
		Commits oldest first, each with its sorted branch attribution.
	"""
	since = week_window.format_git_time(window.start)
	until = week_window.format_git_time(window.end)

	branch_commits = {}
	for branch in branches:
		commit_ids = git.list_branch_commits(branch, since, until)
		kept = cap_recent(commit_ids, per_branch_limit)
		if log_fn and len(kept) < len(commit_ids):
			log_fn(f"Branch {branch}: keeping latest {len(kept)} of {len(commit_ids)} commits")
		branch_commits[branch] = kept
	attribution = build_attribution_map(branch_commits)

	all_commit_ids = git.list_all_commits(since, until)
	ordered_ids = order_tracked_commits(all_commit_ids, attribution)

	commits = []
	for commit_id in ordered_ids:
		info = git.get_commit_info(commit_id)
		commits.append(Commit(
			id=commit_id,
			title=info.title,
			author=info.author,
			link=build_commit_link(commit_id, repo, server_url),
			branches=attribution.branches_for(commit_id),
		))
	if log_fn:
		log_fn(f"Collected {len(commits)} commit(s) across {len(branches)} branch(es)")
	return commits
