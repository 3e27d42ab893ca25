from sddl.wintypes.guid import GUID
from sddl.wintypes.sid import SID, IDENTIFIER_AUTHORITY
from sddl.wintypes.access_mask import ACCESS_MASK, ADS_ACCESS_MASK, MANDATORY_ACCESS_MASK
from sddl.wintypes.ace import ACE, ACEType, AceFlags, ACE_OBJECT_PRESENCE, ACEHeader
from sddl.wintypes.acl import ACL, ACLType, ACLRevision
from sddl.wintypes.control_flags import SE_CONTROL
from sddl.wintypes.security_descriptor import SECURITY_DESCRIPTOR

__all__ = [
	'GUID',
	'SID',
	'IDENTIFIER_AUTHORITY',
	'ACCESS_MASK',
	'ADS_ACCESS_MASK',
	'MANDATORY_ACCESS_MASK',
	'ACE',
	'ACEType',
	'AceFlags',
	'ACE_OBJECT_PRESENCE',
	'ACEHeader',
	'ACL',
	'ACLType',
	'ACLRevision',
	'SECURITY_DESCRIPTOR',
	'SE_CONTROL',
]
