#!/usr/bin/env python3
#
# Author:
#  Tamas Jos (@skelsec)
#

import io
import enum

from sddl import logger
from sddl.commons.exceptions import BinaryDecodeError
from sddl.commons.utils import read_exact, read_uint
from sddl.wintypes.ace import ACE, ACEHeader
from sddl.wintypes.control_flags import SE_CONTROL
from sddl.wintypes import sddl_constants as sc

ACL_HEADER_SIZE = 8

class ACLType(enum.Enum):
	SACL = sc.SDDL_SACL
	DACL = sc.SDDL_DACL

class ACLRevision(enum.IntEnum):
	ACL_REVISION = 0x02
	ACL_REVISION_DS = 0x04

# control flags rendered in front of the ACEs, in this order
SDDL_ACL_FLAGS = {
	ACLType.DACL : {
		sc.SDDL_PROTECTED : SE_CONTROL.SE_DACL_PROTECTED,
		sc.SDDL_AUTO_INHERIT_REQ : SE_CONTROL.SE_DACL_AUTO_INHERIT_REQ,
		sc.SDDL_AUTO_INHERITED : SE_CONTROL.SE_DACL_AUTO_INHERITED,
	},
	ACLType.SACL : {
		sc.SDDL_PROTECTED : SE_CONTROL.SE_SACL_PROTECTED,
		sc.SDDL_AUTO_INHERIT_REQ : SE_CONTROL.SE_SACL_AUTO_INHERIT_REQ,
		sc.SDDL_AUTO_INHERITED : SE_CONTROL.SE_SACL_AUTO_INHERITED,
	},
}

def acl_control_mask(acl_type):
	"""Control bits that belong to an ACL of the given type"""
	mask = SE_CONTROL(0)
	for flag in SDDL_ACL_FLAGS[acl_type].values():
		mask |= flag
	return mask

def aclflags_to_sddl(acl_type, control_flags):
	t = ''
	table = SDDL_ACL_FLAGS[acl_type]
	for code in table:
		if control_flags & table[code] == table[code]:
			t += code
	return t

# https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/20233ed8-a6c6-4097-aafa-dd545ed24428
class ACL:
	"""
	An ordered list of ACEs.
	acl_type and control_flags are only used for SDDL rendering and are
	not part of the binary structure nor of the equality check.
	control_flags only keeps the bits that belong to acl_type.
	"""
	def __init__(self, acl_type = ACLType.DACL, control_flags = None):
		self.AclRevision = ACLRevision.ACL_REVISION
		self.Sbz1 = 0
		self.AclSize = ACL_HEADER_SIZE
		self.Sbz2 = 0
		self.aces = []

		self.acl_type = ACLType(acl_type)
		self.control_flags = SE_CONTROL(control_flags if control_flags is not None else 0) & acl_control_mask(self.acl_type)

	@property
	def AceCount(self):
		return len(self.aces)

	@staticmethod
	def new(aces, acl_type, control_flags = None, revision = None):
		acl = ACL(acl_type, control_flags)
		acl.aces = list(aces)
		if revision is None:
			revision = ACLRevision.ACL_REVISION
			for ace in acl.aces:
				if ace.OBJECT_ACE is True:
					revision = ACLRevision.ACL_REVISION_DS
					break
		acl.AclRevision = ACLRevision(revision)
		acl.AclSize = acl.raw_size()
		if acl.AclSize > 0xFFFF:
			raise ValueError('ACL would be %d bytes long, maximum is 65535' % acl.AclSize)
		return acl

	@staticmethod
	def from_bytes(data, acl_type, control_flags = None):
		return ACL.from_buffer(io.BytesIO(data), acl_type, control_flags)

	@staticmethod
	def from_buffer(buff, acl_type, control_flags = None):
		pos = buff.tell()
		acl = ACL(acl_type, control_flags)
		revision = read_uint(buff, 1, 'ACL revision')
		try:
			acl.AclRevision = ACLRevision(revision)
		except ValueError:
			raise BinaryDecodeError('Unknown ACL revision %d' % revision, pos)
		acl.Sbz1 = read_uint(buff, 1, 'ACL Sbz1')
		acl.AclSize = read_uint(buff, 2, 'ACL size')
		ace_count = read_uint(buff, 2, 'ACL ACE count')
		acl.Sbz2 = read_uint(buff, 2, 'ACL Sbz2')
		if acl.AclSize < ACL_HEADER_SIZE:
			raise BinaryDecodeError('ACL size %d is smaller than the ACL header' % acl.AclSize, pos)
		logger.debug('Decoding %s revision %d size %d with %d ACEs at %d' % (acl_type, acl.AclRevision, acl.AclSize, ace_count, pos))

		data = read_exact(buff, acl.AclSize - ACL_HEADER_SIZE, 'ACL')
		ace_buff = io.BytesIO(data)
		for i in range(ace_count):
			if len(data) - ace_buff.tell() < 4:
				raise BinaryDecodeError('ACE #%d starts past the end of the ACL' % i, pos)
			hdr = ACEHeader.pre_parse(ace_buff)
			if ace_buff.tell() + hdr.AceSize > len(data):
				raise BinaryDecodeError('ACE #%d overruns the ACL size' % i, pos)
			acl.aces.append(ACE.from_buffer(ace_buff))

		slack = len(data) - ace_buff.tell()
		if slack > 0:
			logger.debug('ACL at %d has %d unused bytes after the last ACE' % (pos, slack))
		return acl

	def raw_size(self):
		return ACL_HEADER_SIZE + sum([ace.raw_size() for ace in self.aces])

	def to_bytes(self):
		data = b''
		for ace in self.aces:
			data += ace.to_bytes()
		t = int(self.AclRevision).to_bytes(1, 'little', signed = False)
		t += self.Sbz1.to_bytes(1, 'little', signed = False)
		t += (ACL_HEADER_SIZE + len(data)).to_bytes(2, 'little', signed = False)
		t += len(self.aces).to_bytes(2, 'little', signed = False)
		t += self.Sbz2.to_bytes(2, 'little', signed = False)
		return t + data

	def to_buffer(self, buff):
		buff.write(self.to_bytes())

	def to_sddl(self, control_flags = None):
		if control_flags is None:
			control_flags = self.control_flags
		t = '%s:%s' % (self.acl_type.value, aclflags_to_sddl(self.acl_type, control_flags))
		for ace in self.aces:
			t += '(%s)' % ace.to_sddl()
		return t

	@staticmethod
	def from_sddl(sddl, domain = None):
		from sddl.protocol.parser import SDDLParser
		return SDDLParser(sddl, domain).parse_acl()

	def to_dict(self):
		t = {}
		t['type'] = self.acl_type.name
		t['revision'] = int(self.AclRevision)
		t['size'] = self.AclSize
		t['aces'] = [ace.to_dict() for ace in self.aces]
		return t

	def __eq__(self, other):
		if not isinstance(other, ACL):
			return NotImplemented
		return self.AclRevision == other.AclRevision and \
			self.AclSize == other.AclSize and \
			self.aces == other.aces

	def __repr__(self):
		return 'ACL(%s)' % self.to_sddl()

	def __str__(self):
		t = '=== ACL ===\r\n'
		for ace in self.aces:
			t += '%s\r\n' % str(ace)
		return t
