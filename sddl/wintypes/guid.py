#!/usr/bin/env python3
#
# Author:
#  Tamas Jos (@skelsec)
#

import io
import re

from sddl.commons.utils import read_exact

GUID_RE = re.compile(r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$')

# https://docs.microsoft.com/en-us/previous-versions/aa373931(v%3Dvs.80)
# first three groups are stored little-endian, the last 8 bytes as-is
class GUID:
	def __init__(self):
		self.Data1 = None
		self.Data2 = None
		self.Data3 = None
		self.Data4 = None

	@staticmethod
	def from_bytes(data):
		return GUID.from_buffer(io.BytesIO(data))

	@staticmethod
	def from_buffer(buff):
		data = read_exact(buff, 16, 'GUID')
		guid = GUID()
		guid.Data1 = data[0:4][::-1]
		guid.Data2 = data[4:6][::-1]
		guid.Data3 = data[6:8][::-1]
		guid.Data4 = data[8:16]
		return guid

	@staticmethod
	def from_string(s):
		if GUID_RE.match(s) is None:
			raise ValueError('Invalid GUID string "%s"' % s)
		parts = s.split('-')
		guid = GUID()
		guid.Data1 = bytes.fromhex(parts[0])
		guid.Data2 = bytes.fromhex(parts[1])
		guid.Data3 = bytes.fromhex(parts[2])
		guid.Data4 = bytes.fromhex(parts[3]) + bytes.fromhex(parts[4])
		return guid

	def to_bytes(self):
		return self.Data1[::-1] + self.Data2[::-1] + self.Data3[::-1] + self.Data4

	def to_buffer(self, buff):
		buff.write(self.to_bytes())

	def raw_size(self):
		return 16

	def __eq__(self, other):
		if not isinstance(other, GUID):
			return NotImplemented
		return self.to_bytes() == other.to_bytes()

	def __hash__(self):
		return hash(self.to_bytes())

	def __repr__(self):
		return 'GUID(%s)' % str(self)

	def __str__(self):
		return '-'.join([self.Data1.hex(), self.Data2.hex(),self.Data3.hex(),self.Data4[:2].hex(),self.Data4[2:].hex()])
