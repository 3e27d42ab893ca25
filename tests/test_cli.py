"""Pytest tests for the sddlinfo command line tool and its completer."""

import json
import base64

from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document

from sddl.examples.sddlinfo import main, describe
from sddl.examples.utils.completers import SDDLCompleter
from sddl.wintypes.security_descriptor import SECURITY_DESCRIPTOR

SDDL_TEXT = 'O:BAG:BAD:P(A;CIOI;GA;;;SY)'


class TestSddlInfo:
	"""JSON output of the CLI."""

	def test_sddl_input(self, capsys):
		assert main([SDDL_TEXT]) == 0
		out = json.loads(capsys.readouterr().out)
		assert out['owner']['alias'] == 'BA'
		assert out['sddl'] == 'O:BAG:BAD:P(A;OICI;GA;;;SY)'
		assert out['dacl']['aces'][0]['rights'] == 'GA'

	def test_hex_input(self, capsys):
		data = SECURITY_DESCRIPTOR.from_sddl(SDDL_TEXT).to_bytes().hex()
		assert main(['--hex', data]) == 0
		out = json.loads(capsys.readouterr().out)
		assert out['sddl'] == 'O:BAG:BAD:P(A;OICI;GA;;;SY)'

	def test_b64_input(self):
		data = base64.b64encode(SECURITY_DESCRIPTOR.from_sddl(SDDL_TEXT).to_bytes()).decode()
		assert describe(data, 'b64')['sddl'] == 'O:BAG:BAD:P(A;OICI;GA;;;SY)'

	def test_domain(self, capsys):
		assert main(['-d', 'S-1-5-21-1-2-3', 'O:DA']) == 0
		out = json.loads(capsys.readouterr().out)
		assert out['owner']['alias'] == 'DA'

	def test_errors_are_reported(self, capsys):
		assert main(['O:DA', SDDL_TEXT]) == 1
		out = json.loads(capsys.readouterr().out)
		assert 'error' in out[0]
		assert out[1]['owner']['alias'] == 'BA'

	def test_max_size(self):
		data = SECURITY_DESCRIPTOR.from_sddl(SDDL_TEXT).to_bytes().hex()
		assert 'error' in describe(data, 'hex', max_size = 10)

	def test_bad_hex(self):
		assert 'error' in describe('zz', 'hex')

	def test_batch_file(self, tmp_path, capsys):
		infile = tmp_path / 'input.txt'
		infile.write_text('%s\n\nO:SYG:SY\n' % SDDL_TEXT)
		outfile = tmp_path / 'out.json'
		assert main(['-f', str(infile), '-o', str(outfile)]) == 0
		out = json.loads(outfile.read_text())
		assert len(out) == 2
		assert out[1]['group']['alias'] == 'SY'


class TestSddlCompleter:
	"""Context dependent completion."""

	def complete(self, text):
		completer = SDDLCompleter()
		return [c.display_text for c in completer.get_completions(Document(text), CompleteEvent())]

	def test_owner_alias(self):
		res = self.complete('O:B')
		assert 'BA' in res
		assert 'BU' in res
		assert 'SY' not in res

	def test_ace_type(self):
		res = self.complete('D:(O')
		assert 'OA' in res
		assert 'OL' not in res

	def test_ace_rights(self):
		res = self.complete('D:(A;CI;GRG')
		assert 'GA' in res
		assert 'GX' in res
		assert 'RP' not in res

	def test_ace_sid(self):
		assert 'WD' in self.complete('D:(A;;GA;;;W')

	def test_sections(self):
		assert self.complete('O:BAG:BA') == SDDLCompleter.SECTIONS
