"""Split change content into size-bounded chunks for the LLM.

Content is first cut into logical units (one per file for git patches),
then units are packed greedily into chunks of at most max_chars characters.
A unit is only ever cut when it alone is longer than max_chars; it is then
sliced into max_chars pieces in order.

The unit splitter is a plain callable taking the raw text and returning the
ordered list of units, so another patch syntax only needs its own splitter.
"""

# Standard Library
import re


GIT_FILE_HEADER_RE = re.compile(r"^diff --git ", re.MULTILINE)
UNIT_SEPARATOR = "\n\n"


#============================================
def split_on_header(content: str, header_re: re.Pattern) -> list[str]:
	"""
	Cut content before every header match, keeping headers with their units.

	Text before the first header is its own unit. Units are stripped and
	empty units dropped.
	"""
	if not content:
		return []
	starts = [match.start() for match in header_re.finditer(content)]
	if not starts or starts[0] != 0:
		starts.insert(0, 0)
	starts.append(len(content))
	units = []
	for begin, end in zip(starts, starts[1:]):
		unit = content[begin:end].strip()
		if unit:
			units.append(unit)
	return units


#============================================
def split_git_patch_by_file(content: str) -> list[str]:
	"""
	Split a git patch into per-file segments.
	"""
	return split_on_header(content, GIT_FILE_HEADER_RE)


#============================================
def regex_unit_splitter(pattern: str):
	"""
	Build a unit splitter for a patch syntax whose file headers match pattern.

	The pattern is compiled in MULTILINE mode, so anchor it with ^.
	"""
	header_re = re.compile(pattern, re.MULTILINE)

	def _split(content: str) -> list[str]:
		return split_on_header(content, header_re)

	return _split


#============================================
def slice_text(text: str, max_chars: int) -> list[str]:
	"""
	Cut text into consecutive max_chars slices.
	"""
	return [text[i:i + max_chars] for i in range(0, len(text), max_chars)]


#============================================
def pack_units(units: list[str], max_chars: int) -> list[str]:
	"""
	Greedily pack units into chunks no longer than max_chars.

	Args:
		units: ordered logical units.
		max_chars: maximum characters per chunk.

	Returns:
		Ordered chunk strings.
	"""
	if max_chars < 1:
		raise ValueError(f"max_chars must be >= 1; got {max_chars}")
	chunks = []
	buffer = ""
	for unit in units:
		if not unit:
			continue
		candidate = f"{buffer}{UNIT_SEPARATOR}{unit}" if buffer else unit
		if len(candidate) <= max_chars:
			buffer = candidate
			continue
		if buffer:
			chunks.append(buffer)
			buffer = ""
		if len(unit) > max_chars:
			chunks.extend(slice_text(unit, max_chars))
		else:
			buffer = unit
	if buffer:
		chunks.append(buffer)
	return chunks


#============================================
def chunk_diff(content: str, max_chars: int, splitter=split_git_patch_by_file) -> list[str]:
	"""
	Split raw change content into ordered chunks of at most max_chars.

	Empty content yields no chunks.
	"""
	if not content or not content.strip():
		return []
	units = splitter(content)
	return pack_units(units, max_chars)
