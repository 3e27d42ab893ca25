#!/usr/bin/env python3
#
# Author:
#  Tamas Jos (@skelsec)
#

import io
import enum

from sddl import logger
from sddl.commons.exceptions import BinaryDecodeError, UnsupportedAceType
from sddl.commons.utils import read_exact, read_uint, pad4
from sddl.wintypes.sid import SID
from sddl.wintypes.guid import GUID
from sddl.wintypes.access_mask import ACCESS_MASK, mask_to_sddl
from sddl.wintypes import sddl_constants as sc

ACE_HEADER_SIZE = 8 # type, flags, size and the access mask
CONDITIONAL_ACE_SIGNATURE = b'artx'

# https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/628ebb1d-c509-4ea0-a10f-77ef97ca4586
class ACEType(enum.Enum):
	ACCESS_ALLOWED_ACE_TYPE = 0x00
	ACCESS_DENIED_ACE_TYPE = 0x01
	SYSTEM_AUDIT_ACE_TYPE = 0x02
	SYSTEM_ALARM_ACE_TYPE = 0x03
	ACCESS_ALLOWED_COMPOUND_ACE_TYPE = 0x04
	ACCESS_ALLOWED_OBJECT_ACE_TYPE = 0x05
	ACCESS_DENIED_OBJECT_ACE_TYPE = 0x06
	SYSTEM_AUDIT_OBJECT_ACE_TYPE = 0x07
	SYSTEM_ALARM_OBJECT_ACE_TYPE = 0x08
	ACCESS_ALLOWED_CALLBACK_ACE_TYPE = 0x09
	ACCESS_DENIED_CALLBACK_ACE_TYPE = 0x0A
	ACCESS_ALLOWED_CALLBACK_OBJECT_ACE_TYPE = 0x0B
	ACCESS_DENIED_CALLBACK_OBJECT_ACE_TYPE = 0x0C
	SYSTEM_AUDIT_CALLBACK_ACE_TYPE = 0x0D
	SYSTEM_ALARM_CALLBACK_ACE_TYPE = 0x0E
	SYSTEM_AUDIT_CALLBACK_OBJECT_ACE_TYPE = 0x0F
	SYSTEM_ALARM_CALLBACK_OBJECT_ACE_TYPE = 0x10
	SYSTEM_MANDATORY_LABEL_ACE_TYPE = 0x11
	SYSTEM_RESOURCE_ATTRIBUTE_ACE_TYPE = 0x12
	SYSTEM_SCOPED_POLICY_ID_ACE_TYPE = 0x13

# reserved by the format, decoding them fails
UNSUPPORTED_ACE_TYPES = [
	ACEType.SYSTEM_ALARM_ACE_TYPE,
	ACEType.ACCESS_ALLOWED_COMPOUND_ACE_TYPE,
	ACEType.SYSTEM_ALARM_OBJECT_ACE_TYPE,
	ACEType.SYSTEM_ALARM_CALLBACK_ACE_TYPE,
	ACEType.SYSTEM_ALARM_CALLBACK_OBJECT_ACE_TYPE,
]

# https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-dtyp/628ebb1d-c509-4ea0-a10f-77ef97ca4586
class AceFlags(enum.IntFlag):
	CONTAINER_INHERIT_ACE = 0x02
	FAILED_ACCESS_ACE_FLAG = 0x80
	INHERIT_ONLY_ACE = 0x08
	INHERITED_ACE = 0x10
	NO_PROPAGATE_INHERIT_ACE = 0x04
	OBJECT_INHERIT_ACE = 0x01
	SUCCESSFUL_ACCESS_ACE_FLAG = 0x40
	CRITICAL_ACE_FLAG = 0x20

class ACE_OBJECT_PRESENCE(enum.IntFlag):
	NONE = 0x00000000 #Neither ObjectType nor InheritedObjectType are valid.
	ACE_OBJECT_TYPE_PRESENT = 0x00000001 #ObjectType is valid.
	ACE_INHERITED_OBJECT_TYPE_PRESENT = 0x00000002 #InheritedObjectType is valid. If this value is not specified, all types of child objects can inherit the ACE.

SDDL_ACE_TYPES = {
	ACEType.ACCESS_ALLOWED_ACE_TYPE : sc.SDDL_ACCESS_ALLOWED,
	ACEType.ACCESS_DENIED_ACE_TYPE : sc.SDDL_ACCESS_DENIED,
	ACEType.SYSTEM_AUDIT_ACE_TYPE : sc.SDDL_AUDIT,
	ACEType.SYSTEM_ALARM_ACE_TYPE : sc.SDDL_ALARM,
	ACEType.ACCESS_ALLOWED_OBJECT_ACE_TYPE : sc.SDDL_OBJECT_ACCESS_ALLOWED,
	ACEType.ACCESS_DENIED_OBJECT_ACE_TYPE : sc.SDDL_OBJECT_ACCESS_DENIED,
	ACEType.SYSTEM_AUDIT_OBJECT_ACE_TYPE : sc.SDDL_OBJECT_AUDIT,
	ACEType.SYSTEM_ALARM_OBJECT_ACE_TYPE : sc.SDDL_OBJECT_ALARM,
	ACEType.ACCESS_ALLOWED_CALLBACK_ACE_TYPE : sc.SDDL_CALLBACK_ACCESS_ALLOWED,
	ACEType.ACCESS_DENIED_CALLBACK_ACE_TYPE : sc.SDDL_CALLBACK_ACCESS_DENIED,
	ACEType.ACCESS_ALLOWED_CALLBACK_OBJECT_ACE_TYPE : sc.SDDL_CALLBACK_OBJECT_ACCESS_ALLOWED,
	ACEType.ACCESS_DENIED_CALLBACK_OBJECT_ACE_TYPE : sc.SDDL_CALLBACK_OBJECT_ACCESS_DENIED,
	ACEType.SYSTEM_AUDIT_CALLBACK_ACE_TYPE : sc.SDDL_CALLBACK_AUDIT,
	ACEType.SYSTEM_ALARM_CALLBACK_ACE_TYPE : sc.SDDL_CALLBACK_ALARM,
	ACEType.SYSTEM_AUDIT_CALLBACK_OBJECT_ACE_TYPE : sc.SDDL_CALLBACK_OBJECT_AUDIT,
	ACEType.SYSTEM_ALARM_CALLBACK_OBJECT_ACE_TYPE : sc.SDDL_CALLBACK_OBJECT_ALARM,
	ACEType.SYSTEM_MANDATORY_LABEL_ACE_TYPE : sc.SDDL_MANDATORY_LABEL,
	ACEType.SYSTEM_RESOURCE_ATTRIBUTE_ACE_TYPE : sc.SDDL_RESOURCE_ATTRIBUTE,
	ACEType.SYSTEM_SCOPED_POLICY_ID_ACE_TYPE : sc.SDDL_SCOPED_POLICY_ID,
}
SDDL_ACE_TYPES_REV = {v: k for k, v in SDDL_ACE_TYPES.items()}

# rendering order
SDDL_ACE_FLAGS = {
	sc.SDDL_OBJECT_INHERIT : AceFlags.OBJECT_INHERIT_ACE,
	sc.SDDL_CONTAINER_INHERIT : AceFlags.CONTAINER_INHERIT_ACE,
	sc.SDDL_NO_PROPAGATE : AceFlags.NO_PROPAGATE_INHERIT_ACE,
	sc.SDDL_INHERIT_ONLY : AceFlags.INHERIT_ONLY_ACE,
	sc.SDDL_INHERITED : AceFlags.INHERITED_ACE,
	sc.SDDL_AUDIT_SUCCESS : AceFlags.SUCCESSFUL_ACCESS_ACE_FLAG,
	sc.SDDL_AUDIT_FAILURE : AceFlags.FAILED_ACCESS_ACE_FLAG,
	sc.SDDL_CRITICAL : AceFlags.CRITICAL_ACE_FLAG,
}

def aceflags_to_sddl(flags):
	t = ''
	for code in SDDL_ACE_FLAGS:
		if flags & SDDL_ACE_FLAGS[code] == SDDL_ACE_FLAGS[code]:
			t += code
	return t


class ACEHeader:
	def __init__(self, ace_type = None, flags = None, size = None):
		self.AceType = ace_type
		self.AceFlags = flags
		self.AceSize = size

	@staticmethod
	def from_bytes(data):
		return ACEHeader.from_buffer(io.BytesIO(data))

	@staticmethod
	def from_buffer(buff):
		pos = buff.tell()
		hdr = ACEHeader()
		tag = read_uint(buff, 1, 'ACE type')
		try:
			hdr.AceType = ACEType(tag)
		except ValueError:
			raise BinaryDecodeError('Unknown ACE type 0x%02x' % tag, pos)
		hdr.AceFlags = AceFlags(read_uint(buff, 1, 'ACE flags'))
		hdr.AceSize = read_uint(buff, 2, 'ACE size')
		return hdr

	@staticmethod
	def pre_parse(buff):
		pos = buff.tell()
		hdr = ACEHeader.from_buffer(buff)
		buff.seek(pos, 0)
		return hdr

	def to_bytes(self):
		t = self.AceType.value.to_bytes(1, 'little', signed = False)
		t += int(self.AceFlags).to_bytes(1, 'little', signed = False)
		t += self.AceSize.to_bytes(2, 'little', signed = False)
		return t

	def __eq__(self, other):
		if not isinstance(other, ACEHeader):
			return NotImplemented
		return self.AceType == other.AceType and self.AceFlags == other.AceFlags and self.AceSize == other.AceSize

	def __str__(self):
		return '%s %s %s' % (self.AceType.name, repr(self.AceFlags), self.AceSize)


class ACE:
	"""
	Base of all ACE variants.
	Subclasses set ACE_TYPE and whether the layout carries object type GUIDs
	(OBJECT_ACE) and/or trailing application data (CALLBACK_ACE).
	"""
	ACE_TYPE = None
	OBJECT_ACE = False
	CALLBACK_ACE = False

	def __init__(self):
		self.AceFlags = AceFlags(0)
		self.Mask = ACCESS_MASK(0)
		self.ObjectType = None
		self.InheritedObjectType = None
		self.Sid = None
		self.ApplicationData = b''

	@classmethod
	def _build(cls, flags, mask, sid, object_type = None, inherited_object_type = None, application_data = b''):
		if cls.OBJECT_ACE is False and (object_type is not None or inherited_object_type is not None):
			raise ValueError('%s does not carry object types' % cls.__name__)
		if cls.CALLBACK_ACE is False and application_data:
			raise ValueError('%s does not carry application data' % cls.__name__)
		ace = cls()
		ace.AceFlags = AceFlags(flags)
		ace.Mask = ACCESS_MASK(mask)
		ace.Sid = sid
		ace.ObjectType = object_type
		ace.InheritedObjectType = inherited_object_type
		ace.ApplicationData = bytes(application_data) if application_data else b''
		if ace.raw_size() > 0xFFFF:
			raise ValueError('ACE would be %d bytes long, maximum is 65535' % ace.raw_size())
		return ace

	@property
	def Header(self):
		return ACEHeader(self.ACE_TYPE, self.AceFlags, self.raw_size())

	@property
	def Flags(self):
		"""Object presence flags, derived from which GUIDs are set"""
		flags = ACE_OBJECT_PRESENCE.NONE
		if self.ObjectType is not None:
			flags |= ACE_OBJECT_PRESENCE.ACE_OBJECT_TYPE_PRESENT
		if self.InheritedObjectType is not None:
			flags |= ACE_OBJECT_PRESENCE.ACE_INHERITED_OBJECT_TYPE_PRESENT
		return flags

	@property
	def is_conditional(self):
		return self.ApplicationData[:4] == CONDITIONAL_ACE_SIGNATURE

	@staticmethod
	def from_bytes(data):
		return ACE.from_buffer(io.BytesIO(data))

	@staticmethod
	def from_buffer(buff):
		pos = buff.tell()
		hdr = ACEHeader.pre_parse(buff)
		if hdr.AceType in UNSUPPORTED_ACE_TYPES:
			raise UnsupportedAceType(hdr.AceType.value, pos)
		if hdr.AceSize % 4 != 0:
			raise BinaryDecodeError('ACE size %d is not a multiple of 4' % hdr.AceSize, pos)
		if hdr.AceSize < ACE_HEADER_SIZE:
			raise BinaryDecodeError('ACE size %d is smaller than the ACE header' % hdr.AceSize, pos)
		logger.debug('Decoding %s of %d bytes at %d' % (hdr.AceType.name, hdr.AceSize, pos))
		data = read_exact(buff, hdr.AceSize, 'ACE')
		return acetype2ace[hdr.AceType]._from_ace_buffer(io.BytesIO(data), hdr, pos)

	@classmethod
	def _from_ace_buffer(cls, buff, hdr, pos):
		ace = cls()
		buff.seek(4, 0)
		ace.AceFlags = hdr.AceFlags
		ace.Mask = ACCESS_MASK.from_buffer(buff)
		if cls.OBJECT_ACE is True:
			flags = ACE_OBJECT_PRESENCE(read_uint(buff, 4, 'ACE object flags'))
			if ACE_OBJECT_PRESENCE.ACE_OBJECT_TYPE_PRESENT in flags:
				ace.ObjectType = GUID.from_buffer(buff)
			if ACE_OBJECT_PRESENCE.ACE_INHERITED_OBJECT_TYPE_PRESENT in flags:
				ace.InheritedObjectType = GUID.from_buffer(buff)

		ace.Sid = SID.from_buffer(buff)
		if ace.Sid.raw_size() % 4 != 0:
			raise BinaryDecodeError('SID length inside ACE is not a multiple of 4', pos)

		remaining = hdr.AceSize - buff.tell()
		if remaining < 0:
			raise BinaryDecodeError('ACE fields overrun the declared ACE size', pos)
		if cls.CALLBACK_ACE is True:
			ace.ApplicationData = buff.read(remaining)
		return ace

	def to_bytes(self):
		body = int(self.Mask).to_bytes(4, 'little', signed = False)
		if self.OBJECT_ACE is True:
			body += int(self.Flags).to_bytes(4, 'little', signed = False)
			if self.ObjectType is not None:
				body += self.ObjectType.to_bytes()
			if self.InheritedObjectType is not None:
				body += self.InheritedObjectType.to_bytes()
		body += self.Sid.to_bytes()
		if self.CALLBACK_ACE is True:
			body += self.ApplicationData
		body += b'\x00' * pad4(len(body))

		hdr = ACEHeader(self.ACE_TYPE, self.AceFlags, 4 + len(body))
		return hdr.to_bytes() + body

	def to_buffer(self, buff):
		buff.write(self.to_bytes())

	def raw_size(self):
		size = ACE_HEADER_SIZE
		if self.OBJECT_ACE is True:
			size += 4
			if self.ObjectType is not None:
				size += self.ObjectType.raw_size()
			if self.InheritedObjectType is not None:
				size += self.InheritedObjectType.raw_size()
		size += self.Sid.raw_size()
		if self.CALLBACK_ACE is True:
			size += len(self.ApplicationData)
		return size + pad4(size)

	def to_sddl(self):
		"""Renders the ACE fields without the enclosing parentheses"""
		mandatory = self.ACE_TYPE == ACEType.SYSTEM_MANDATORY_LABEL_ACE_TYPE
		return '%s;%s;%s;%s;%s;%s' % (
			SDDL_ACE_TYPES[self.ACE_TYPE],
			aceflags_to_sddl(self.AceFlags),
			mask_to_sddl(self.Mask, mandatory),
			str(self.ObjectType) if self.ObjectType is not None else '',
			str(self.InheritedObjectType) if self.InheritedObjectType is not None else '',
			self.Sid.to_sddl(),
		)

	@staticmethod
	def from_sddl(sddl, domain = None):
		from sddl.protocol.parser import SDDLParser
		return SDDLParser(sddl, domain).parse_ace()

	def to_dict(self):
		t = {}
		t['type'] = self.ACE_TYPE.name
		t['flags'] = aceflags_to_sddl(self.AceFlags)
		t['size'] = self.raw_size()
		t['mask'] = int(self.Mask)
		t['rights'] = mask_to_sddl(self.Mask, self.ACE_TYPE == ACEType.SYSTEM_MANDATORY_LABEL_ACE_TYPE)
		if self.OBJECT_ACE is True:
			t['object_type'] = str(self.ObjectType) if self.ObjectType is not None else None
			t['inherited_object_type'] = str(self.InheritedObjectType) if self.InheritedObjectType is not None else None
		t['sid'] = self.Sid.to_dict()
		if self.CALLBACK_ACE is True:
			t['application_data'] = self.ApplicationData.hex()
			t['conditional'] = self.is_conditional
		return t

	def __eq__(self, other):
		if not isinstance(other, ACE):
			return NotImplemented
		return self.ACE_TYPE == other.ACE_TYPE and \
			self.AceFlags == other.AceFlags and \
			self.Mask == other.Mask and \
			self.ObjectType == other.ObjectType and \
			self.InheritedObjectType == other.InheritedObjectType and \
			self.Sid == other.Sid and \
			self.ApplicationData == other.ApplicationData

	def __repr__(self):
		return '%s(%s)' % (self.__class__.__name__, self.to_sddl())

	def __str__(self):
		t = '%s\r\n' % self.__class__.__name__
		t += 'Header: %s\r\n' % self.Header
		t += 'Mask: %s\r\n' % repr(self.Mask)
		if self.OBJECT_ACE is True:
			t += 'Flags: %s\r\n' % repr(self.Flags)
			t += 'ObjectType: %s\r\n' % self.ObjectType
			t += 'InheritedObjectType: %s\r\n' % self.InheritedObjectType
		t += 'Sid: %s\r\n' % self.Sid
		if self.CALLBACK_ACE is True:
			t += 'ApplicationData: %s\r\n' % self.ApplicationData.hex()
		return t


class _BasicACE(ACE):
	@classmethod
	def new(cls, flags, mask, sid):
		return cls._build(flags, mask, sid)

class _ObjectACE(ACE):
	OBJECT_ACE = True

	@classmethod
	def new(cls, flags, mask, sid, object_type = None, inherited_object_type = None):
		return cls._build(flags, mask, sid, object_type, inherited_object_type)

class _CallbackACE(ACE):
	CALLBACK_ACE = True

	@classmethod
	def new(cls, flags, mask, sid, application_data = b''):
		return cls._build(flags, mask, sid, application_data = application_data)

class _CallbackObjectACE(ACE):
	OBJECT_ACE = True
	CALLBACK_ACE = True

	@classmethod
	def new(cls, flags, mask, sid, object_type = None, inherited_object_type = None, application_data = b''):
		return cls._build(flags, mask, sid, object_type, inherited_object_type, application_data)


class ACCESS_ALLOWED_ACE(_BasicACE):
	ACE_TYPE = ACEType.ACCESS_ALLOWED_ACE_TYPE

class ACCESS_DENIED_ACE(_BasicACE):
	ACE_TYPE = ACEType.ACCESS_DENIED_ACE_TYPE

class SYSTEM_AUDIT_ACE(_BasicACE):
	ACE_TYPE = ACEType.SYSTEM_AUDIT_ACE_TYPE

class ACCESS_ALLOWED_OBJECT_ACE(_ObjectACE):
	ACE_TYPE = ACEType.ACCESS_ALLOWED_OBJECT_ACE_TYPE

class ACCESS_DENIED_OBJECT_ACE(_ObjectACE):
	ACE_TYPE = ACEType.ACCESS_DENIED_OBJECT_ACE_TYPE

# the object audit ACE may carry application data after the SID
class SYSTEM_AUDIT_OBJECT_ACE(_CallbackObjectACE):
	ACE_TYPE = ACEType.SYSTEM_AUDIT_OBJECT_ACE_TYPE

class ACCESS_ALLOWED_CALLBACK_ACE(_CallbackACE):
	ACE_TYPE = ACEType.ACCESS_ALLOWED_CALLBACK_ACE_TYPE

class ACCESS_DENIED_CALLBACK_ACE(_CallbackACE):
	ACE_TYPE = ACEType.ACCESS_DENIED_CALLBACK_ACE_TYPE

class ACCESS_ALLOWED_CALLBACK_OBJECT_ACE(_CallbackObjectACE):
	ACE_TYPE = ACEType.ACCESS_ALLOWED_CALLBACK_OBJECT_ACE_TYPE

class ACCESS_DENIED_CALLBACK_OBJECT_ACE(_CallbackObjectACE):
	ACE_TYPE = ACEType.ACCESS_DENIED_CALLBACK_OBJECT_ACE_TYPE

class SYSTEM_AUDIT_CALLBACK_ACE(_CallbackACE):
	ACE_TYPE = ACEType.SYSTEM_AUDIT_CALLBACK_ACE_TYPE

class SYSTEM_AUDIT_CALLBACK_OBJECT_ACE(_CallbackObjectACE):
	ACE_TYPE = ACEType.SYSTEM_AUDIT_CALLBACK_OBJECT_ACE_TYPE

class SYSTEM_MANDATORY_LABEL_ACE(_BasicACE):
	ACE_TYPE = ACEType.SYSTEM_MANDATORY_LABEL_ACE_TYPE

class SYSTEM_RESOURCE_ATTRIBUTE_ACE(_CallbackACE):
	ACE_TYPE = ACEType.SYSTEM_RESOURCE_ATTRIBUTE_ACE_TYPE

class SYSTEM_SCOPED_POLICY_ID_ACE(_BasicACE):
	ACE_TYPE = ACEType.SYSTEM_SCOPED_POLICY_ID_ACE_TYPE


acetype2ace = {
	ACEType.ACCESS_ALLOWED_ACE_TYPE : ACCESS_ALLOWED_ACE,
	ACEType.ACCESS_DENIED_ACE_TYPE : ACCESS_DENIED_ACE,
	ACEType.SYSTEM_AUDIT_ACE_TYPE : SYSTEM_AUDIT_ACE,
	ACEType.ACCESS_ALLOWED_OBJECT_ACE_TYPE : ACCESS_ALLOWED_OBJECT_ACE,
	ACEType.ACCESS_DENIED_OBJECT_ACE_TYPE : ACCESS_DENIED_OBJECT_ACE,
	ACEType.SYSTEM_AUDIT_OBJECT_ACE_TYPE : SYSTEM_AUDIT_OBJECT_ACE,
	ACEType.ACCESS_ALLOWED_CALLBACK_ACE_TYPE : ACCESS_ALLOWED_CALLBACK_ACE,
	ACEType.ACCESS_DENIED_CALLBACK_ACE_TYPE : ACCESS_DENIED_CALLBACK_ACE,
	ACEType.ACCESS_ALLOWED_CALLBACK_OBJECT_ACE_TYPE : ACCESS_ALLOWED_CALLBACK_OBJECT_ACE,
	ACEType.ACCESS_DENIED_CALLBACK_OBJECT_ACE_TYPE : ACCESS_DENIED_CALLBACK_OBJECT_ACE,
	ACEType.SYSTEM_AUDIT_CALLBACK_ACE_TYPE : SYSTEM_AUDIT_CALLBACK_ACE,
	ACEType.SYSTEM_AUDIT_CALLBACK_OBJECT_ACE_TYPE : SYSTEM_AUDIT_CALLBACK_OBJECT_ACE,
	ACEType.SYSTEM_MANDATORY_LABEL_ACE_TYPE : SYSTEM_MANDATORY_LABEL_ACE,
	ACEType.SYSTEM_RESOURCE_ATTRIBUTE_ACE_TYPE : SYSTEM_RESOURCE_ATTRIBUTE_ACE,
	ACEType.SYSTEM_SCOPED_POLICY_ID_ACE_TYPE : SYSTEM_SCOPED_POLICY_ID_ACE,
}
