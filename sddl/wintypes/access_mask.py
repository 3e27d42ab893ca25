#!/usr/bin/env python3
#
# Author:
#  Tamas Jos (@skelsec)
#

import enum

from sddl.commons.utils import read_uint

# https://docs.microsoft.com/en-us/windows/win32/secauthz/access-mask
class ACCESS_MASK(enum.IntFlag):
	GENERIC_READ = 0x80000000
	GENERIC_WRITE = 0x40000000
	GENERIC_EXECUTE = 0x20000000
	GENERIC_ALL = 0x10000000
	MAXIMUM_ALLOWED = 0x02000000
	ACCESS_SYSTEM_SECURITY = 0x01000000
	SYNCHRONIZE = 0x00100000
	WRITE_OWNER = 0x00080000
	WRITE_DACL = 0x00040000
	READ_CONTROL = 0x00020000
	DELETE = 0x00010000

	@staticmethod
	def from_buffer(buff):
		return ACCESS_MASK(read_uint(buff, 4, 'access mask'))

	def object_specific_flags(self):
		"""Lower 16 bits, the part whose meaning depends on the object type"""
		return int(self) & 0xFFFF

	def sddl_string(self, mandatory = False):
		return mask_to_sddl(int(self), mandatory)

	@staticmethod
	def from_sddl(sddl):
		from sddl.protocol.parser import SDDLParser
		return SDDLParser(sddl).parse_access_mask()

#https://docs.microsoft.com/en-us/previous-versions/tn-archive/ff405675(v%3dmsdn.10)
class ADS_ACCESS_MASK(enum.IntFlag):
	CREATE_CHILD   = 0x00000001 #The ObjectType GUID identifies a type of child object. The ACE controls the trustee's right to create this type of child object.
	DELETE_CHILD   = 0x00000002 #The ObjectType GUID identifies a type of child object. The ACE controls the trustee's right to delete this type of child object.
	ACTRL_DS_LIST  = 0x00000004
	SELF           = 0x00000008 #The ObjectType GUID identifies a validated write.
	READ_PROP      = 0x00000010 #The ObjectType GUID identifies a property set or property of the object. The ACE controls the trustee's right to read the property or property set.
	WRITE_PROP     = 0x00000020 #The ObjectType GUID identifies a property set or property of the object. The ACE controls the trustee's right to write the property or property set.
	DELETE_TREE    = 0x00000040
	LIST_OBJECT    = 0x00000080
	CONTROL_ACCESS = 0x00000100 #The ObjectType GUID identifies an extended access right.

	@staticmethod
	def from_access_mask(mask):
		return ADS_ACCESS_MASK(int(mask) & 0xFFFF)

# https://docs.microsoft.com/en-us/windows/win32/api/winnt/ns-winnt-system_mandatory_label_ace
class MANDATORY_ACCESS_MASK(enum.IntFlag):
	SYSTEM_MANDATORY_LABEL_NO_WRITE_UP = 0x1
	SYSTEM_MANDATORY_LABEL_NO_READ_UP = 0x2
	SYSTEM_MANDATORY_LABEL_NO_EXECUTE_UP = 0x4

	@staticmethod
	def from_access_mask(mask):
		return MANDATORY_ACCESS_MASK(int(mask) & 0xFFFF)


FILE_ALL_ACCESS = 0x001F01FF
FILE_GENERIC_READ = 0x00120089
FILE_GENERIC_WRITE = 0x00120116
FILE_GENERIC_EXECUTE = 0x001200A0
KEY_ALL_ACCESS = 0x000F003F
KEY_READ = 0x00020019
KEY_WRITE = 0x00020006
KEY_EXECUTE = 0x00020019

# exact-match composites, checked in this order when rendering
SDDL_COMPOSITE_RIGHTS = {
	'FA' : FILE_ALL_ACCESS,
	'FR' : FILE_GENERIC_READ,
	'FW' : FILE_GENERIC_WRITE,
	'FX' : FILE_GENERIC_EXECUTE,
	'KA' : KEY_ALL_ACCESS,
	'KR' : KEY_READ,
	'KW' : KEY_WRITE,
	'KX' : KEY_EXECUTE,
}

SDDL_GENERIC_RIGHTS = {
	'GR' : ACCESS_MASK.GENERIC_READ,
	'GW' : ACCESS_MASK.GENERIC_WRITE,
	'GX' : ACCESS_MASK.GENERIC_EXECUTE,
	'GA' : ACCESS_MASK.GENERIC_ALL,
	'MA' : ACCESS_MASK.MAXIMUM_ALLOWED,
	'AS' : ACCESS_MASK.ACCESS_SYSTEM_SECURITY,
	'SY' : ACCESS_MASK.SYNCHRONIZE,
	'WO' : ACCESS_MASK.WRITE_OWNER,
	'WD' : ACCESS_MASK.WRITE_DACL,
	'RC' : ACCESS_MASK.READ_CONTROL,
	'SD' : ACCESS_MASK.DELETE,
}

SDDL_ADS_RIGHTS = {
	'CC' : ADS_ACCESS_MASK.CREATE_CHILD,
	'DC' : ADS_ACCESS_MASK.DELETE_CHILD,
	'LC' : ADS_ACCESS_MASK.ACTRL_DS_LIST,
	'SW' : ADS_ACCESS_MASK.SELF,
	'RP' : ADS_ACCESS_MASK.READ_PROP,
	'WP' : ADS_ACCESS_MASK.WRITE_PROP,
	'DT' : ADS_ACCESS_MASK.DELETE_TREE,
	'LO' : ADS_ACCESS_MASK.LIST_OBJECT,
	'CR' : ADS_ACCESS_MASK.CONTROL_ACCESS,
}

SDDL_MANDATORY_RIGHTS = {
	'NW' : MANDATORY_ACCESS_MASK.SYSTEM_MANDATORY_LABEL_NO_WRITE_UP,
	'NR' : MANDATORY_ACCESS_MASK.SYSTEM_MANDATORY_LABEL_NO_READ_UP,
	'NX' : MANDATORY_ACCESS_MASK.SYSTEM_MANDATORY_LABEL_NO_EXECUTE_UP,
}

SDDL_RIGHTS = {}
for _table in [SDDL_COMPOSITE_RIGHTS, SDDL_GENERIC_RIGHTS, SDDL_ADS_RIGHTS, SDDL_MANDATORY_RIGHTS]:
	for _code in _table:
		SDDL_RIGHTS[_code] = int(_table[_code])


def mask_to_sddl(mask, mandatory = False):
	"""
	Renders an access mask as SDDL rights text.
	Composite aliases win on exact match, otherwise the two-letter codes of every
	known bit are concatenated. Masks with bits no code covers are rendered as hex.
	"""
	mask = int(mask)
	if mandatory is False:
		for code in SDDL_COMPOSITE_RIGHTS:
			if SDDL_COMPOSITE_RIGHTS[code] == mask:
				return code

	t = ''
	remaining = mask
	specific = SDDL_MANDATORY_RIGHTS if mandatory is True else SDDL_ADS_RIGHTS
	for table in [SDDL_GENERIC_RIGHTS, specific]:
		for code in table:
			bit = int(table[code])
			if mask & bit == bit:
				t += code
				remaining &= ~bit

	if remaining != 0:
		return '0x%x' % mask
	return t
