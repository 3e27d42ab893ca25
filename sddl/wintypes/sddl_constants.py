# SDDL tokens, names follow sddl.h

SDDL_OWNER = 'O'
SDDL_GROUP = 'G'
SDDL_DACL = 'D'
SDDL_SACL = 'S'

SDDL_PROTECTED = 'P'
SDDL_AUTO_INHERIT_REQ = 'AR'
SDDL_AUTO_INHERITED = 'AI'
SDDL_NULL_ACL = 'NO_ACCESS_CONTROL'

SDDL_ACCESS_ALLOWED = 'A'
SDDL_ACCESS_DENIED = 'D'
SDDL_AUDIT = 'AU'
SDDL_ALARM = 'AL'
SDDL_OBJECT_ACCESS_ALLOWED = 'OA'
SDDL_OBJECT_ACCESS_DENIED = 'OD'
SDDL_OBJECT_AUDIT = 'OU'
SDDL_OBJECT_ALARM = 'OL'
SDDL_CALLBACK_ACCESS_ALLOWED = 'XA'
SDDL_CALLBACK_ACCESS_DENIED = 'XD'
SDDL_CALLBACK_OBJECT_ACCESS_ALLOWED = 'ZA'
SDDL_CALLBACK_OBJECT_ACCESS_DENIED = 'ZD'
SDDL_CALLBACK_AUDIT = 'XU'
SDDL_CALLBACK_ALARM = 'XL'
SDDL_CALLBACK_OBJECT_AUDIT = 'ZU'
SDDL_CALLBACK_OBJECT_ALARM = 'ZL'
SDDL_MANDATORY_LABEL = 'ML'
SDDL_RESOURCE_ATTRIBUTE = 'RA'
SDDL_SCOPED_POLICY_ID = 'SP'

SDDL_OBJECT_INHERIT = 'OI'
SDDL_CONTAINER_INHERIT = 'CI'
SDDL_NO_PROPAGATE = 'NP'
SDDL_INHERIT_ONLY = 'IO'
SDDL_INHERITED = 'ID'
SDDL_AUDIT_SUCCESS = 'SA'
SDDL_AUDIT_FAILURE = 'FA'
SDDL_CRITICAL = 'CR'

SDDL_SEPERATOR = ';'
SDDL_DELIMINATOR = ':'
SDDL_ACE_BEGIN = '('
SDDL_ACE_END = ')'
SDDL_SID_PREFIX = 'S-'
SDDL_HEX_PREFIX = '0x'
