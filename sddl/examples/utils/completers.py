from typing import Iterable, List, Tuple

from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document

from sddl.wintypes.sid_alias import ALIAS_SIDS, ALIAS_LONG_NAMES
from sddl.wintypes.access_mask import SDDL_RIGHTS
from sddl.wintypes.ace import SDDL_ACE_TYPES, SDDL_ACE_FLAGS, UNSUPPORTED_ACE_TYPES


class SDDLCompleter(Completer):
	"""
	Completes SDDL tokens based on where the cursor is.

	Inside an ACE the field index decides what is offered (ACE type, ACE flags,
	access rights or SID aliases), after "O:" / "G:" SID aliases are offered,
	anywhere else the section tags.

	:param min_input_len: Don't do autocompletion when the input string is shorter.
	"""
	SECTIONS = ['O:', 'G:', 'D:', 'S:', '(']

	def __init__(self, min_input_len: int = 0) -> None:
		self.min_input_len = min_input_len
		self.sid_aliases = sorted(ALIAS_SIDS.keys())
		self.ace_types = sorted([SDDL_ACE_TYPES[x] for x in SDDL_ACE_TYPES if x not in UNSUPPORTED_ACE_TYPES])
		self.ace_flags = list(SDDL_ACE_FLAGS.keys())
		self.rights = list(SDDL_RIGHTS.keys())

	def candidates(self, text: str) -> Tuple[List[str], str]:
		"""Returns the possible tokens and the fragment of the token being typed"""
		ace_start = text.rfind('(')
		if ace_start > text.rfind(')'):
			fields = text[ace_start+1:].split(';')
			current = fields[-1]
			if len(fields) == 1:
				return self.ace_types, current
			if len(fields) == 2:
				return self.ace_flags, current[len(current) - len(current) % 2:]
			if len(fields) == 3:
				return self.rights, current[len(current) - len(current) % 2:]
			if len(fields) == 6:
				return self.sid_aliases, current
			return [], current

		for tag in ['O:', 'G:']:
			pos = text.rfind(tag)
			if pos != -1 and len(text[pos+2:]) < 2:
				return self.sid_aliases, text[pos+2:]
		return self.SECTIONS, ''

	def get_completions(self, document: Document,
						complete_event: CompleteEvent) -> Iterable[Completion]:
		text = document.text_before_cursor
		if len(text) < self.min_input_len:
			return

		candidates, fragment = self.candidates(text)
		for candidate in candidates:
			if candidate.startswith(fragment):
				yield Completion(
					candidate[len(fragment):],
					0,
					display = candidate,
					display_meta = ALIAS_LONG_NAMES.get(candidate, '') if candidates is self.sid_aliases else '',
				)
