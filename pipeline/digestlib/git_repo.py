"""Thin git CLI adapter used by the weekly digest.

Every query shells out to the git executable in one working tree. Nothing
is cached and nothing is retried here.
"""

# Standard Library
import os
import subprocess
from dataclasses import dataclass


#============================================
class GitError(RuntimeError):
	"""
	Raised when a git command fails or git is missing.
	"""


#============================================
@dataclass(frozen=True)
class CommitInfo:
	title: str
	author: str
	parent: str | None


#============================================
def _split_lines(text: str) -> list[str]:
	"""
	Split command output into stripped non-empty lines.
	"""
	lines = []
	for line in text.split("\n"):
		value = line.strip()
		if value:
			lines.append(value)
	return lines


#============================================
class GitRepo:
	"""
	Read-only view of one git working tree.
	"""

	def __init__(self, repo_path: str = ".", remote: str = "origin", timezone_name: str = ""):
		self.repo_path = os.path.abspath(repo_path)
		self.remote = remote
		self.timezone_name = timezone_name
		self._empty_tree_id = ""

	#============================================
	def _run_git(self, args: list[str], input_text: str | None = None) -> str:
		"""
		Run git and return stripped stdout.
		"""
		env = dict(os.environ)
		if self.timezone_name:
			# keep git's own date rendering in the digest zone
			env["TZ"] = self.timezone_name
		try:
			result = subprocess.run(
				["git"] + args,
				cwd=self.repo_path,
				input=input_text,
				capture_output=True,
				text=True,
				# diffs carry arbitrary file bytes; keep undecodable ones as U+FFFD
				encoding="utf-8",
				errors="replace",
				env=env,
				check=False,
			)
		except FileNotFoundError as error:
			raise GitError("git is not installed or not found in PATH") from error
		if result.returncode != 0:
			err_text = result.stderr.strip() or "unknown git error"
			raise GitError(f"git {' '.join(args)} failed: {err_text}")
		return result.stdout.strip()

	#============================================
	def refresh_remotes(self) -> None:
		"""
		Fetch all remotes, pruning deleted branches.
		"""
		self._run_git(["fetch", "--all", "--prune", "--tags"])

	#============================================
	def list_remote_branches(self) -> list[str]:
		"""
		List remote-tracking branches, skipping the symbolic HEAD pointer.
		"""
		output = self._run_git([
			"for-each-ref",
			"--format=%(refname:short)",
			f"refs/remotes/{self.remote}",
		])
		# newer git abbreviates refs/remotes/origin/HEAD to plain "origin"
		skipped = {f"{self.remote}/HEAD", self.remote}
		branches = []
		for name in _split_lines(output):
			if name in skipped:
				continue
			branches.append(name)
		return branches

	#============================================
	def list_branch_commits(self, branch: str, since: str, until: str) -> list[str]:
		"""
		List non-merge commit ids on one branch in the range, oldest first.
		"""
		output = self._run_git([
			"log",
			branch,
			"--no-merges",
			f"--since={since}",
			f"--until={until}",
			"--pretty=format:%H",
			"--reverse",
			"--",
		])
		return _split_lines(output)

	#============================================
	def list_all_commits(self, since: str, until: str) -> list[str]:
		"""
		List non-merge commit ids across all refs in the range, oldest first.
		"""
		output = self._run_git([
			"log",
			"--all",
			"--no-merges",
			f"--since={since}",
			f"--until={until}",
			"--pretty=format:%H",
			"--reverse",
		])
		return _split_lines(output)

	#============================================
	def get_commit_info(self, commit_id: str) -> CommitInfo:
		"""
		Resolve title, author name and first parent of one commit.
		"""
		output = self._run_git(["show", "-s", "--format=%s%x00%an%x00%P", commit_id])
		parts = output.split("\x00")
		if len(parts) != 3:
			raise GitError(f"Unexpected git show output for {commit_id}: {output!r}")
		title, author, parents_text = parts
		parents = parents_text.split()
		parent = parents[0] if parents else None
		return CommitInfo(title=title.strip(), author=author.strip(), parent=parent)

	#============================================
	def empty_tree_id(self) -> str:
		"""
		Return the object id of the empty tree for this repository.
		"""
		if not self._empty_tree_id:
			self._empty_tree_id = self._run_git(["hash-object", "-t", "tree", "--stdin"], input_text="")
		return self._empty_tree_id

	#============================================
	def diff(self, base: str, commit_id: str, excludes: list[str]) -> str:
		"""
		Diff base against commit_id with zero context lines.

		Args:
			base: parent commit id or empty tree id.
			commit_id: commit to diff.
			excludes: glob patterns turned into :(exclude) pathspecs.

		Returns:
			Unified diff text, empty when nothing survives the filter.
		"""
		pathspecs = ["."]
		for pattern in excludes:
			pathspecs.append(f":(exclude,glob){pattern}")
		args = ["diff", "--unified=0", "--minimal", base, commit_id, "--"] + pathspecs
		return self._run_git(args)
