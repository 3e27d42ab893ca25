#!/usr/bin/env python3
#
# Author:
#  Tamas Jos (@skelsec)
#

import re

from sddl.commons.exceptions import SDDLParseError, MissingDomainInformation, IllegalSidFormat
from sddl.wintypes.sid import SID, MAX_SUB_AUTHORITIES
from sddl.wintypes.guid import GUID
from sddl.wintypes.access_mask import ACCESS_MASK, SDDL_RIGHTS
from sddl.wintypes.ace import AceFlags, SDDL_ACE_TYPES_REV, SDDL_ACE_FLAGS, UNSUPPORTED_ACE_TYPES, acetype2ace
from sddl.wintypes.acl import ACL, ACLType, SDDL_ACL_FLAGS
from sddl.wintypes.control_flags import SE_CONTROL
from sddl.wintypes.security_descriptor import SECURITY_DESCRIPTOR
from sddl.wintypes.sid_alias import ALIAS_SIDS, SECURITY_NT_NON_UNIQUE
from sddl.wintypes import sddl_constants as sc

SID_TOKEN_RE = re.compile(r'S-\d+-(?:0[xX][0-9a-fA-F]+|\d+)(?:-\d+)*', re.ASCII)
ALIAS_TOKEN_RE = re.compile(r'[A-Z]{2}')
HEX_MASK_RE = re.compile(r'^0[xX][0-9a-fA-F]{1,8}$')


def domain_from_sid(domain_sid):
	"""
	Returns the domain sub-authorities of a domain SID (S-1-5-21-x-y-z -> [x, y, z])
	"""
	if isinstance(domain_sid, str):
		domain_sid = SID.from_string(domain_sid)
	if int(domain_sid.IdentifierAuthority) != 5 or len(domain_sid.SubAuthority) < 2 or domain_sid.SubAuthority[0] != SECURITY_NT_NON_UNIQUE:
		raise IllegalSidFormat(str(domain_sid), 'not a domain SID (S-1-5-21-...)')
	return domain_sid.SubAuthority[1:]


class SDDLParser:
	"""
	Recursive descent parser for SDDL strings.
	`domain` holds the domain sub-authorities (e.g. [1, 2, 3] for S-1-5-21-1-2-3)
	used to resolve domain relative aliases like DA or DU.
	"""
	def __init__(self, text, domain = None):
		self.text = text
		self.pos = 0
		self.domain = None
		if domain is not None:
			if isinstance(domain, (str, SID)):
				domain = domain_from_sid(domain)
			self.domain = list(domain)
			# S-1-5-21-<domain>-<rid> must still fit in a SID
			if len(self.domain) > MAX_SUB_AUTHORITIES - 2:
				raise IllegalSidFormat(self.domain, 'a domain can have at most %d sub-authorities' % (MAX_SUB_AUTHORITIES - 2))
			for x in self.domain:
				if not isinstance(x, int) or x < 0 or x > 0xFFFFFFFF:
					raise IllegalSidFormat(self.domain, 'domain sub-authority %s does not fit in 32 bits' % x)

	def error(self, reason, pos = None):
		if pos is None:
			pos = self.pos
		return SDDLParseError(self.text, pos, reason)

	def at_end(self):
		return self.pos >= len(self.text)

	def startswith(self, token):
		return self.text.startswith(token, self.pos)

	def expect(self, token):
		if self.startswith(token) is False:
			found = self.text[self.pos:self.pos+len(token)]
			raise self.error('expected "%s" found "%s"' % (token, found if found else '<end>'))
		self.pos += len(token)

	def finish(self):
		if self.at_end() is False:
			raise self.error('unexpected trailing data "%s"' % self.text[self.pos:])

	def read_field(self):
		"""Reads an ACE field up to the next ';' or ')'"""
		start = self.pos
		while self.at_end() is False and self.text[self.pos] not in (sc.SDDL_SEPERATOR, sc.SDDL_ACE_END):
			self.pos += 1
		return self.text[start:self.pos], start

	### entry points

	def parse_sid(self):
		if self.text.startswith(sc.SDDL_SID_PREFIX):
			return SID.from_string(self.text)
		sid = self.sid()
		self.finish()
		return sid

	def parse_access_mask(self):
		mask = self.access_mask(self.text, 0)
		self.pos = len(self.text)
		return mask

	def parse_ace(self):
		ace = self.ace(self.startswith(sc.SDDL_ACE_BEGIN))
		self.finish()
		return ace

	def parse_acl(self):
		acl = self.acl()
		self.finish()
		return acl

	def parse_security_descriptor(self):
		sd = self.security_descriptor()
		self.finish()
		return sd

	### grammar

	def alias(self, alias, pos):
		if alias not in ALIAS_SIDS:
			raise self.error('unknown SID alias "%s"' % alias, pos)
		kind, authority, value = ALIAS_SIDS[alias]
		if kind == 'domain':
			if self.domain is None:
				raise MissingDomainInformation(alias)
			return SID.new_with_domain(value, self.domain)
		return SID.new(authority, value)

	def sid(self):
		"""sid-or-alias embedded in a larger string, stops where the SID ends"""
		start = self.pos
		if self.startswith(sc.SDDL_SID_PREFIX):
			m = SID_TOKEN_RE.match(self.text, self.pos)
			if m is None:
				raise self.error('malformed SID')
			self.pos = m.end()
			return SID.from_string(m.group(0))

		m = ALIAS_TOKEN_RE.match(self.text, self.pos)
		if m is None:
			raise self.error('expected a SID or a SID alias')
		self.pos = m.end()
		return self.alias(m.group(0), start)

	def sid_field(self, text, pos):
		if text.startswith(sc.SDDL_SID_PREFIX):
			return SID.from_string(text)
		if ALIAS_TOKEN_RE.fullmatch(text) is None:
			raise self.error('expected a SID or a SID alias found "%s"' % text, pos)
		return self.alias(text, pos)

	def access_mask(self, text, pos):
		if text[:2].lower() == sc.SDDL_HEX_PREFIX:
			if HEX_MASK_RE.match(text) is None:
				raise self.error('malformed hex access mask "%s"' % text, pos)
			return ACCESS_MASK(int(text[2:], 16))

		if len(text) % 2 != 0:
			raise self.error('access rights must be two-letter codes, got "%s"' % text, pos)
		mask = 0
		for i in range(0, len(text), 2):
			code = text[i:i+2]
			if code not in SDDL_RIGHTS:
				raise self.error('unknown access right "%s"' % code, pos + i)
			mask |= SDDL_RIGHTS[code]
		return ACCESS_MASK(mask)

	def ace_flags(self, text, pos):
		if len(text) % 2 != 0:
			raise self.error('ACE flags must be two-letter codes, got "%s"' % text, pos)
		flags = AceFlags(0)
		for i in range(0, len(text), 2):
			code = text[i:i+2]
			if code not in SDDL_ACE_FLAGS:
				raise self.error('unknown ACE flag "%s"' % code, pos + i)
			flags |= SDDL_ACE_FLAGS[code]
		return flags

	def guid(self, text, pos):
		if text == '':
			return None
		try:
			return GUID.from_string(text)
		except ValueError:
			raise self.error('malformed GUID "%s"' % text, pos)

	def ace(self, parenthesized = True):
		if parenthesized is True:
			self.expect(sc.SDDL_ACE_BEGIN)

		fields = []
		for _ in range(5):
			fields.append(self.read_field())
			self.expect(sc.SDDL_SEPERATOR)
		sid_text, sid_pos = self.read_field()
		if self.startswith(sc.SDDL_SEPERATOR):
			raise self.error('conditional expressions and resource attributes are not supported')
		if parenthesized is True:
			self.expect(sc.SDDL_ACE_END)

		(type_text, type_pos), (flags_text, flags_pos), (mask_text, mask_pos), (obj_text, obj_pos), (inh_text, inh_pos) = fields
		if type_text not in SDDL_ACE_TYPES_REV:
			raise self.error('unknown ACE type "%s"' % type_text, type_pos)
		ace_type = SDDL_ACE_TYPES_REV[type_text]
		if ace_type in UNSUPPORTED_ACE_TYPES:
			raise self.error('ACE type "%s" is not supported' % type_text, type_pos)
		ace_class = acetype2ace[ace_type]

		flags = self.ace_flags(flags_text, flags_pos)
		mask = self.access_mask(mask_text, mask_pos)
		object_type = self.guid(obj_text, obj_pos)
		inherited_object_type = self.guid(inh_text, inh_pos)
		if ace_class.OBJECT_ACE is False:
			if object_type is not None:
				raise self.error('ACE type "%s" does not take an object type' % type_text, obj_pos)
			if inherited_object_type is not None:
				raise self.error('ACE type "%s" does not take an inherited object type' % type_text, inh_pos)
		sid = self.sid_field(sid_text, sid_pos)

		return ace_class._build(flags, mask, sid, object_type, inherited_object_type)

	def acl(self):
		start = self.pos
		if self.startswith(sc.SDDL_DACL + sc.SDDL_DELIMINATOR):
			acl_type = ACLType.DACL
		elif self.startswith(sc.SDDL_SACL + sc.SDDL_DELIMINATOR):
			acl_type = ACLType.SACL
		else:
			raise self.error('expected "D:" or "S:"')
		self.pos += 2

		if self.startswith(sc.SDDL_NULL_ACL):
			raise self.error('NULL ACLs are not supported')

		table = SDDL_ACL_FLAGS[acl_type]
		control_flags = SE_CONTROL(0)
		while True:
			for code in [sc.SDDL_AUTO_INHERIT_REQ, sc.SDDL_AUTO_INHERITED, sc.SDDL_PROTECTED]:
				if self.startswith(code):
					control_flags |= table[code]
					self.pos += len(code)
					break
			else:
				break

		aces = []
		while self.startswith(sc.SDDL_ACE_BEGIN):
			aces.append(self.ace())

		try:
			return ACL.new(aces, acl_type, control_flags)
		except ValueError as e:
			raise self.error(str(e), start)

	def security_descriptor(self):
		parts = {}
		while self.at_end() is False:
			tag = self.text[self.pos:self.pos+2]
			if tag not in ['O:', 'G:', 'D:', 'S:']:
				raise self.error('expected one of "O:", "G:", "D:", "S:"')
			if tag in parts:
				raise self.error('duplicate "%s" section' % tag)
			if tag in ['O:', 'G:']:
				self.pos += 2
				parts[tag] = self.sid()
			else:
				parts[tag] = self.acl()

		return SECURITY_DESCRIPTOR.new(
			owner = parts.get('O:'),
			group = parts.get('G:'),
			sacl = parts.get('S:'),
			dacl = parts.get('D:'),
		)


def parse_sddl(text, domain = None):
	return SDDLParser(text, domain).parse_security_descriptor()
