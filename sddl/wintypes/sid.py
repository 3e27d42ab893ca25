#!/usr/bin/env python3
#
# Author:
#  Tamas Jos (@skelsec)
#

import io
import re

from sddl.commons.exceptions import IllegalSidFormat, BinaryDecodeError
from sddl.commons.utils import read_uint
from sddl.wintypes import sid_alias

MAX_SUB_AUTHORITIES = 15
SID_REVISION = 1

SID_STRING_RE = re.compile(r'^S-(\d+)-(0[xX][0-9a-fA-F]+|\d+)((?:-[^-]*)*)$', re.ASCII)


class IDENTIFIER_AUTHORITY:
	"""6 byte big-endian authority value of a SID"""
	def __init__(self, value = 0):
		if value < 0 or value >= 2**48:
			raise ValueError('Identifier authority %s does not fit in 6 bytes' % value)
		self.Value = value

	@staticmethod
	def from_buffer(buff):
		return IDENTIFIER_AUTHORITY(read_uint(buff, 6, 'identifier authority', 'big'))

	def to_bytes(self):
		return self.Value.to_bytes(6, 'big', signed = False)

	def raw_size(self):
		return 6

	def __int__(self):
		return self.Value

	def __eq__(self, other):
		if isinstance(other, IDENTIFIER_AUTHORITY):
			return self.Value == other.Value
		if isinstance(other, int):
			return self.Value == other
		return NotImplemented

	def __hash__(self):
		return hash(self.Value)

	def __repr__(self):
		return 'IDENTIFIER_AUTHORITY(%d)' % self.Value

	def __str__(self):
		return str(self.Value)

IDENTIFIER_AUTHORITY.NULL_SID_AUTHORITY = IDENTIFIER_AUTHORITY(sid_alias.SECURITY_NULL_SID_AUTHORITY)
IDENTIFIER_AUTHORITY.WORLD_SID_AUTHORITY = IDENTIFIER_AUTHORITY(sid_alias.SECURITY_WORLD_SID_AUTHORITY)
IDENTIFIER_AUTHORITY.LOCAL_SID_AUTHORITY = IDENTIFIER_AUTHORITY(sid_alias.SECURITY_LOCAL_SID_AUTHORITY)
IDENTIFIER_AUTHORITY.CREATOR_SID_AUTHORITY = IDENTIFIER_AUTHORITY(sid_alias.SECURITY_CREATOR_SID_AUTHORITY)
IDENTIFIER_AUTHORITY.NON_UNIQUE_AUTHORITY = IDENTIFIER_AUTHORITY(sid_alias.SECURITY_NON_UNIQUE_AUTHORITY)
IDENTIFIER_AUTHORITY.NT_AUTHORITY = IDENTIFIER_AUTHORITY(sid_alias.SECURITY_NT_AUTHORITY)
IDENTIFIER_AUTHORITY.RESOURCE_MANAGER_AUTHORITY = IDENTIFIER_AUTHORITY(sid_alias.SECURITY_RESOURCE_MANAGER_AUTHORITY)
IDENTIFIER_AUTHORITY.APP_PACKAGE_AUTHORITY = IDENTIFIER_AUTHORITY(sid_alias.SECURITY_APP_PACKAGE_AUTHORITY)
IDENTIFIER_AUTHORITY.MANDATORY_LABEL_AUTHORITY = IDENTIFIER_AUTHORITY(sid_alias.SECURITY_MANDATORY_LABEL_AUTHORITY)
IDENTIFIER_AUTHORITY.AUTHENTICATION_AUTHORITY = IDENTIFIER_AUTHORITY(sid_alias.SECURITY_AUTHENTICATION_AUTHORITY)


# https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/f992ad60-0fe4-4b87-9fed-beb478836861
class SID:
	def __init__(self):
		self.Revision = SID_REVISION
		self.IdentifierAuthority = None
		self.SubAuthority = []

	@property
	def SubAuthorityCount(self):
		return len(self.SubAuthority)

	@staticmethod
	def new(authority, sub_authority):
		if not isinstance(authority, IDENTIFIER_AUTHORITY):
			authority = IDENTIFIER_AUTHORITY(authority)
		sub_authority = list(sub_authority)
		if len(sub_authority) == 0:
			raise ValueError('A SID needs at least one sub-authority')
		if len(sub_authority) > MAX_SUB_AUTHORITIES:
			raise ValueError('A SID can hold at most %d sub-authorities' % MAX_SUB_AUTHORITIES)
		for x in sub_authority:
			if x < 0 or x > 0xFFFFFFFF:
				raise ValueError('Sub-authority %s does not fit in 32 bits' % x)
		sid = SID()
		sid.IdentifierAuthority = authority
		sid.SubAuthority = sub_authority
		return sid

	@staticmethod
	def new_with_domain(rid, domain):
		"""S-1-5-21-<domain sub-authorities>-<rid>"""
		return SID.new(IDENTIFIER_AUTHORITY.NT_AUTHORITY, [sid_alias.SECURITY_NT_NON_UNIQUE] + list(domain) + [rid])

	@staticmethod
	def new_builtin(rid):
		"""S-1-5-32-<rid>"""
		return SID.new(IDENTIFIER_AUTHORITY.NT_AUTHORITY, [sid_alias.SECURITY_BUILTIN_DOMAIN_RID, rid])

	@staticmethod
	def from_string(sid_str):
		m = SID_STRING_RE.match(sid_str)
		if m is None:
			raise IllegalSidFormat(sid_str, 'does not match S-1-<authority>-<sub-authority>...')
		if m.group(1) != '1':
			raise IllegalSidFormat(sid_str, 'unsupported revision %s' % m.group(1))

		authority = m.group(2)
		if authority[:2].lower() == '0x':
			authority = int(authority[2:], 16)
		else:
			authority = int(authority)
		if authority >= 2**48:
			raise IllegalSidFormat(sid_str, 'identifier authority does not fit in 6 bytes')

		parts = m.group(3).split('-')[1:]
		if len(parts) == 0:
			raise IllegalSidFormat(sid_str, 'no sub-authorities')
		if len(parts) > MAX_SUB_AUTHORITIES:
			raise IllegalSidFormat(sid_str, 'more than %d sub-authorities' % MAX_SUB_AUTHORITIES)

		sub_authority = []
		for p in parts:
			if p.isascii() is False or p.isdigit() is False:
				raise IllegalSidFormat(sid_str, 'sub-authority "%s" is not a number' % p)
			x = int(p)
			if x > 0xFFFFFFFF:
				raise IllegalSidFormat(sid_str, 'sub-authority %s does not fit in 32 bits' % p)
			sub_authority.append(x)

		return SID.new(IDENTIFIER_AUTHORITY(authority), sub_authority)

	@staticmethod
	def from_sddl(sddl, domain = None):
		from sddl.protocol.parser import SDDLParser
		return SDDLParser(sddl, domain).parse_sid()

	@staticmethod
	def from_bytes(data):
		return SID.from_buffer(io.BytesIO(data))

	@staticmethod
	def from_buffer(buff):
		pos = buff.tell()
		sid = SID()
		sid.Revision = read_uint(buff, 1, 'SID revision')
		if sid.Revision != SID_REVISION:
			raise BinaryDecodeError('Unsupported SID revision %d' % sid.Revision, pos)
		count = read_uint(buff, 1, 'SID sub-authority count')
		if count == 0:
			raise BinaryDecodeError('SID has no sub-authorities', pos)
		if count > MAX_SUB_AUTHORITIES:
			raise BinaryDecodeError('SID has %d sub-authorities, maximum is %d' % (count, MAX_SUB_AUTHORITIES), pos)
		sid.IdentifierAuthority = IDENTIFIER_AUTHORITY.from_buffer(buff)
		for _ in range(count):
			sid.SubAuthority.append(read_uint(buff, 4, 'SID sub-authority'))
		return sid

	def to_bytes(self):
		t = self.Revision.to_bytes(1, 'little', signed = False)
		t += len(self.SubAuthority).to_bytes(1, 'little', signed = False)
		t += self.IdentifierAuthority.to_bytes()
		for i in self.SubAuthority:
			t += i.to_bytes(4, 'little', signed = False)
		return t

	def to_buffer(self, buff):
		buff.write(self.to_bytes())

	def raw_size(self):
		return 8 + 4 * len(self.SubAuthority)

	@property
	def alias(self):
		"""Two-letter SDDL alias of the SID, None if it is not a well-known one"""
		return sid_alias.lookup_alias(int(self.IdentifierAuthority), self.SubAuthority)

	@property
	def wellknown_name(self):
		alias = self.alias
		if alias is None:
			return None
		return sid_alias.ALIAS_LONG_NAMES.get(alias)

	def to_sddl(self):
		alias = self.alias
		if alias is not None:
			return alias
		return str(self)

	def to_dict(self):
		return {
			'sid' : str(self),
			'alias' : self.alias,
			'name' : self.wellknown_name,
		}

	def __eq__(self, other):
		if not isinstance(other, SID):
			return NotImplemented
		return self.Revision == other.Revision and \
			self.IdentifierAuthority == other.IdentifierAuthority and \
			self.SubAuthority == other.SubAuthority

	def __hash__(self):
		return hash(self.to_bytes())

	def __repr__(self):
		return 'SID(%s)' % str(self)

	def __str__(self):
		# middle sub-authorities are zero-padded to 9 digits in the canonical form
		t = 'S-%d-%s' % (self.Revision, self.IdentifierAuthority)
		for i, x in enumerate(self.SubAuthority):
			if i == 0 or i == len(self.SubAuthority) - 1:
				t += '-%d' % x
			else:
				t += '-%09d' % x
		return t
