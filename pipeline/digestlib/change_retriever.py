"""Fetch one commit's change content for summarization."""

DEFAULT_EXCLUDES = (
	"**/*.lock",
	"**/dist/**",
	"**/build/**",
	"**/.next/**",
	"**/.vite/**",
	"**/out/**",
	"**/coverage/**",
	"**/package-lock.json",
	"**/pnpm-lock.yaml",
	"**/yarn.lock",
	"**/*.min.*",
)


#============================================
def retrieve_change(git, commit_id: str, excludes=DEFAULT_EXCLUDES) -> str:
	"""
	Return the zero-context diff of commit_id against its first parent.

	Root commits are diffed against the empty tree. The result is an empty
	string when the commit is empty or only touched excluded paths.

	Args:
		git: GitRepo-like collaborator.
		commit_id: full commit id.
		excludes: glob patterns for paths to leave out.

	Returns:
		Diff text or "".
	"""
	info = git.get_commit_info(commit_id)
	base = info.parent or git.empty_tree_id()
	diff_text = git.diff(base, commit_id, list(excludes))
	if not diff_text.strip():
		return ""
	return diff_text
