#!/usr/bin/env python3
#
# Author:
#  Tamas Jos (@skelsec)
#

import io

from sddl import logger
from sddl.commons.exceptions import BinaryDecodeError
from sddl.commons.utils import read_uint
from sddl.wintypes.sid import SID
from sddl.wintypes.acl import ACL, ACLType, acl_control_mask
from sddl.wintypes.control_flags import SE_CONTROL
from sddl.wintypes import sddl_constants as sc

SECURITY_DESCRIPTOR_REVISION = 1
SECURITY_DESCRIPTOR_HEADER_SIZE = 20

#https://docs.microsoft.com/en-us/windows/desktop/api/winnt/ns-winnt-_security_descriptor
class SECURITY_DESCRIPTOR:
	def __init__(self):
		self.Revision = SECURITY_DESCRIPTOR_REVISION
		self.Sbz1 = 0
		self.Control = SE_CONTROL.SE_SELF_RELATIVE
		self.Owner = None
		self.Group = None
		self.Sacl = None
		self.Dacl = None

	@staticmethod
	def new(owner = None, group = None, sacl = None, dacl = None, control = None):
		"""
		Builds a self-relative descriptor from its parts.
		Control flags are derived from the parts: presence bits for the ACLs
		plus the SACL or DACL control bits each ACL carries. Extra bits can be passed in `control`.
		"""
		sd = SECURITY_DESCRIPTOR()
		flags = SE_CONTROL.SE_SELF_RELATIVE
		if control is not None:
			flags |= SE_CONTROL(control)
		if sacl is not None:
			flags |= SE_CONTROL.SE_SACL_PRESENT | (sacl.control_flags & acl_control_mask(ACLType.SACL))
		if dacl is not None:
			flags |= SE_CONTROL.SE_DACL_PRESENT | (dacl.control_flags & acl_control_mask(ACLType.DACL))
		sd.Control = flags
		sd.Owner = owner
		sd.Group = group
		sd.Sacl = sacl
		sd.Dacl = dacl
		return sd

	@staticmethod
	def from_bytes(data):
		return SECURITY_DESCRIPTOR.from_buffer(io.BytesIO(data))

	@staticmethod
	def from_buffer(buff):
		start = buff.tell()
		sd = SECURITY_DESCRIPTOR()
		sd.Revision = read_uint(buff, 1, 'security descriptor revision')
		if sd.Revision != SECURITY_DESCRIPTOR_REVISION:
			raise BinaryDecodeError('Unsupported security descriptor revision %d' % sd.Revision, start)
		sd.Sbz1 = read_uint(buff, 1, 'security descriptor Sbz1')
		sd.Control = SE_CONTROL(read_uint(buff, 2, 'security descriptor control'))
		if SE_CONTROL.SE_SELF_RELATIVE not in sd.Control:
			raise BinaryDecodeError('Only self-relative security descriptors can be decoded', start)
		OffsetOwner = read_uint(buff, 4, 'owner offset')
		OffsetGroup = read_uint(buff, 4, 'group offset')
		OffsetSacl = read_uint(buff, 4, 'SACL offset')
		OffsetDacl = read_uint(buff, 4, 'DACL offset')
		logger.debug('Security descriptor at %d control %s offsets owner %d group %d sacl %d dacl %d' % (start, repr(sd.Control), OffsetOwner, OffsetGroup, OffsetSacl, OffsetDacl))

		for name, offset in [('owner', OffsetOwner), ('group', OffsetGroup), ('SACL', OffsetSacl), ('DACL', OffsetDacl)]:
			if 0 < offset < SECURITY_DESCRIPTOR_HEADER_SIZE:
				raise BinaryDecodeError('%s offset %d points inside the descriptor header' % (name, offset), start)

		if OffsetOwner > 0:
			buff.seek(start + OffsetOwner, 0)
			sd.Owner = SID.from_buffer(buff)

		if OffsetGroup > 0:
			buff.seek(start + OffsetGroup, 0)
			sd.Group = SID.from_buffer(buff)

		if OffsetSacl > 0:
			if SE_CONTROL.SE_SACL_PRESENT in sd.Control:
				buff.seek(start + OffsetSacl, 0)
				sd.Sacl = ACL.from_buffer(buff, ACLType.SACL, sd.Control)
			else:
				logger.debug('SACL offset is set but SE_SACL_PRESENT is not, ignoring SACL')

		if OffsetDacl > 0:
			if SE_CONTROL.SE_DACL_PRESENT in sd.Control:
				buff.seek(start + OffsetDacl, 0)
				sd.Dacl = ACL.from_buffer(buff, ACLType.DACL, sd.Control)
			else:
				logger.debug('DACL offset is set but SE_DACL_PRESENT is not, ignoring DACL')

		return sd

	def to_bytes(self):
		buff = io.BytesIO()
		self.to_buffer(buff)
		buff.seek(0)
		return buff.read()

	def to_buffer(self, buff):
		# offsets are relative to the start of the descriptor
		data = b''
		OffsetOwner = 0
		OffsetGroup = 0
		OffsetSacl = 0
		OffsetDacl = 0

		if self.Owner is not None:
			OffsetOwner = SECURITY_DESCRIPTOR_HEADER_SIZE + len(data)
			data += self.Owner.to_bytes()

		if self.Group is not None:
			OffsetGroup = SECURITY_DESCRIPTOR_HEADER_SIZE + len(data)
			data += self.Group.to_bytes()

		if self.Sacl is not None:
			OffsetSacl = SECURITY_DESCRIPTOR_HEADER_SIZE + len(data)
			data += self.Sacl.to_bytes()

		if self.Dacl is not None:
			OffsetDacl = SECURITY_DESCRIPTOR_HEADER_SIZE + len(data)
			data += self.Dacl.to_bytes()

		buff.write(self.Revision.to_bytes(1, 'little', signed = False))
		buff.write(self.Sbz1.to_bytes(1, 'little', signed = False))
		buff.write(int(self.Control).to_bytes(2, 'little', signed = False))
		buff.write(OffsetOwner.to_bytes(4, 'little', signed = False))
		buff.write(OffsetGroup.to_bytes(4, 'little', signed = False))
		buff.write(OffsetSacl.to_bytes(4, 'little', signed = False))
		buff.write(OffsetDacl.to_bytes(4, 'little', signed = False))
		buff.write(data)

	def to_sddl(self):
		t = ''
		if self.Owner is not None:
			t += '%s:%s' % (sc.SDDL_OWNER, self.Owner.to_sddl())
		if self.Group is not None:
			t += '%s:%s' % (sc.SDDL_GROUP, self.Group.to_sddl())
		if self.Sacl is not None:
			t += self.Sacl.to_sddl(self.Control)
		if self.Dacl is not None:
			t += self.Dacl.to_sddl(self.Control)
		return t

	@staticmethod
	def from_sddl(sddl, domain = None):
		from sddl.protocol.parser import SDDLParser
		return SDDLParser(sddl, domain).parse_security_descriptor()

	def to_dict(self):
		t = {}
		t['revision'] = self.Revision
		t['control'] = int(self.Control)
		t['control_flags'] = [x.name for x in SE_CONTROL if x in self.Control]
		t['owner'] = self.Owner.to_dict() if self.Owner is not None else None
		t['group'] = self.Group.to_dict() if self.Group is not None else None
		t['sacl'] = self.Sacl.to_dict() if self.Sacl is not None else None
		t['dacl'] = self.Dacl.to_dict() if self.Dacl is not None else None
		t['sddl'] = self.to_sddl()
		return t

	def __eq__(self, other):
		if not isinstance(other, SECURITY_DESCRIPTOR):
			return NotImplemented
		return self.Revision == other.Revision and \
			self.Control == other.Control and \
			self.Owner == other.Owner and \
			self.Group == other.Group and \
			self.Sacl == other.Sacl and \
			self.Dacl == other.Dacl

	def __repr__(self):
		return 'SECURITY_DESCRIPTOR(%s)' % self.to_sddl()

	def __str__(self):
		t = '=== SECURITY_DESCRIPTOR ==\r\n'
		t+= 'Revision : %s\r\n' % self.Revision
		t+= 'Control : %s\r\n' % repr(self.Control)
		t+= 'Owner : %s\r\n' % self.Owner
		t+= 'Group : %s\r\n' % self.Group
		t+= 'Sacl : %s\r\n' % self.Sacl
		t+= 'Dacl : %s\r\n' % self.Dacl
		return t
