#!/usr/bin/env python3
#
# Author:
#  Tamas Jos (@skelsec)
#

# Well-known SID tables used for SDDL two-letter aliases
# https://docs.microsoft.com/en-us/windows/win32/secauthz/sid-strings

SECURITY_NULL_SID_AUTHORITY = 0
SECURITY_WORLD_SID_AUTHORITY = 1
SECURITY_LOCAL_SID_AUTHORITY = 2
SECURITY_CREATOR_SID_AUTHORITY = 3
SECURITY_NON_UNIQUE_AUTHORITY = 4
SECURITY_NT_AUTHORITY = 5
SECURITY_RESOURCE_MANAGER_AUTHORITY = 9
SECURITY_APP_PACKAGE_AUTHORITY = 15
SECURITY_MANDATORY_LABEL_AUTHORITY = 16
SECURITY_AUTHENTICATION_AUTHORITY = 18

SECURITY_NT_NON_UNIQUE = 21
SECURITY_BUILTIN_DOMAIN_RID = 32

WORLD_ALIASES = {
	(0,) : 'WD',
}

CREATOR_ALIASES = {
	(0,) : 'CO',
	(1,) : 'CG',
	(4,) : 'OW',
}

NT_ALIASES = {
	(2,)  : 'NU',
	(4,)  : 'IU',
	(6,)  : 'SU',
	(7,)  : 'AN',
	(9,)  : 'ED',
	(10,) : 'PS',
	(11,) : 'AU',
	(12,) : 'RC',
	(18,) : 'SY',
	(19,) : 'LS',
	(20,) : 'NS',
	(33,) : 'WR',
	(84, 0, 0, 0, 0, 0) : 'UD',
}

APP_PACKAGE_ALIASES = {
	(2, 1) : 'AC',
}

MANDATORY_LABEL_ALIASES = {
	(4096,)  : 'LW',
	(8192,)  : 'ME',
	(8448,)  : 'MP',
	(12288,) : 'HI',
	(16384,) : 'SI',
}

AUTHENTICATION_ALIASES = {
	(1,) : 'AS',
	(2,) : 'SS',
}

# keyed by the last sub-authority of S-1-5-21-<domain>-<rid>
DOMAIN_RID_ALIASES = {
	498 : 'RO',
	500 : 'LA',
	501 : 'LG',
	512 : 'DA',
	513 : 'DU',
	514 : 'DG',
	515 : 'DC',
	516 : 'DD',
	517 : 'CA',
	518 : 'SA',
	519 : 'EA',
	520 : 'PA',
	522 : 'CN',
	525 : 'AP',
	526 : 'KA',
	527 : 'EK',
	553 : 'RS',
}

# keyed by the rid of S-1-5-32-<rid>
BUILTIN_RID_ALIASES = {
	544 : 'BA',
	545 : 'BU',
	546 : 'BG',
	547 : 'PU',
	548 : 'AO',
	549 : 'SO',
	550 : 'PO',
	551 : 'BO',
	552 : 'RE',
	554 : 'RU',
	555 : 'RD',
	556 : 'NO',
	558 : 'MU',
	559 : 'LU',
	568 : 'IS',
	569 : 'CY',
	573 : 'ER',
	574 : 'CD',
	575 : 'RA',
	576 : 'ES',
	577 : 'MS',
	578 : 'HA',
	579 : 'AA',
	580 : 'RM',
}

AUTHORITY_ALIASES = {
	SECURITY_WORLD_SID_AUTHORITY : WORLD_ALIASES,
	SECURITY_CREATOR_SID_AUTHORITY : CREATOR_ALIASES,
	SECURITY_NT_AUTHORITY : NT_ALIASES,
	SECURITY_APP_PACKAGE_AUTHORITY : APP_PACKAGE_ALIASES,
	SECURITY_MANDATORY_LABEL_AUTHORITY : MANDATORY_LABEL_ALIASES,
	SECURITY_AUTHENTICATION_AUTHORITY : AUTHENTICATION_ALIASES,
}

def lookup_alias(authority, sub_authority):
	"""
	Maps an (authority, sub_authorities) pair to its SDDL two-letter alias
	Returns None for SIDs without a well-known alias
	"""
	sub_authority = tuple(sub_authority)
	if authority == SECURITY_NT_AUTHORITY and len(sub_authority) > 1:
		if sub_authority[0] == SECURITY_NT_NON_UNIQUE:
			return DOMAIN_RID_ALIASES.get(sub_authority[-1])
		if sub_authority[0] == SECURITY_BUILTIN_DOMAIN_RID and len(sub_authority) == 2:
			return BUILTIN_RID_ALIASES.get(sub_authority[1])

	table = AUTHORITY_ALIASES.get(authority)
	if table is None:
		return None
	return table.get(sub_authority)

def _build_reverse():
	reverse = {}
	for authority in AUTHORITY_ALIASES:
		for subs in AUTHORITY_ALIASES[authority]:
			reverse[AUTHORITY_ALIASES[authority][subs]] = ('fixed', authority, subs)
	for rid in BUILTIN_RID_ALIASES:
		reverse[BUILTIN_RID_ALIASES[rid]] = ('builtin', SECURITY_NT_AUTHORITY, (SECURITY_BUILTIN_DOMAIN_RID, rid))
	for rid in DOMAIN_RID_ALIASES:
		reverse[DOMAIN_RID_ALIASES[rid]] = ('domain', SECURITY_NT_AUTHORITY, rid)
	return reverse

# alias -> (kind, authority, sub-authorities or rid)
ALIAS_SIDS = _build_reverse()

ALIAS_LONG_NAMES = {
	'AA' : 'BUILTIN\\Access Control Assistance Operators',
	'AC' : 'APPLICATION PACKAGE AUTHORITY\\ALL APPLICATION PACKAGES',
	'AN' : 'NT AUTHORITY\\ANONYMOUS LOGON',
	'AO' : 'BUILTIN\\Account Operators',
	'AP' : '<DOMAIN>\\Protected Users',
	'AS' : 'Authentication authority asserted identity',
	'AU' : 'NT AUTHORITY\\Authenticated Users',
	'BA' : 'BUILTIN\\Administrators',
	'BG' : 'BUILTIN\\Guests',
	'BO' : 'BUILTIN\\Backup Operators',
	'BU' : 'BUILTIN\\Users',
	'CA' : '<DOMAIN>\\Cert Publishers',
	'CD' : 'BUILTIN\\Certificate Service DCOM Access',
	'CG' : 'CREATOR GROUP',
	'CN' : '<DOMAIN>\\Cloneable Domain Controllers',
	'CO' : 'CREATOR OWNER',
	'CY' : 'BUILTIN\\Cryptographic Operators',
	'DA' : '<DOMAIN>\\Domain Admins',
	'DC' : '<DOMAIN>\\Domain Computers',
	'DD' : '<DOMAIN>\\Domain Controllers',
	'DG' : '<DOMAIN>\\Domain Guests',
	'DU' : '<DOMAIN>\\Domain Users',
	'EA' : '<DOMAIN>\\Enterprise Admins',
	'ED' : 'NT AUTHORITY\\ENTERPRISE DOMAIN CONTROLLERS',
	'EK' : '<DOMAIN>\\Enterprise Key Admins',
	'ER' : 'BUILTIN\\Event Log Readers',
	'ES' : 'BUILTIN\\RDS Endpoint Servers',
	'HA' : 'BUILTIN\\Hyper-V Administrators',
	'HI' : 'Mandatory Label\\High Mandatory Level',
	'IS' : 'BUILTIN\\IIS_IUSRS',
	'IU' : 'NT AUTHORITY\\INTERACTIVE',
	'KA' : '<DOMAIN>\\Key Admins',
	'LA' : '<DOMAIN>\\Administrator',
	'LG' : '<DOMAIN>\\Guest',
	'LS' : 'NT AUTHORITY\\LOCAL SERVICE',
	'LU' : 'BUILTIN\\Performance Log Users',
	'LW' : 'Mandatory Label\\Low Mandatory Level',
	'ME' : 'Mandatory Label\\Medium Mandatory Level',
	'MP' : 'Mandatory Label\\Medium Plus Mandatory Level',
	'MS' : 'BUILTIN\\RDS Management Servers',
	'MU' : 'BUILTIN\\Performance Monitor Users',
	'NO' : 'BUILTIN\\Network Configuration Operators',
	'NS' : 'NT AUTHORITY\\NETWORK SERVICE',
	'NU' : 'NT AUTHORITY\\NETWORK',
	'OW' : 'OWNER RIGHTS',
	'PA' : '<DOMAIN>\\Group Policy Creator Owners',
	'PO' : 'BUILTIN\\Print Operators',
	'PS' : 'NT AUTHORITY\\SELF',
	'PU' : 'BUILTIN\\Power Users',
	'RA' : 'BUILTIN\\RDS Remote Access Servers',
	'RC' : 'NT AUTHORITY\\RESTRICTED',
	'RD' : 'BUILTIN\\Remote Desktop Users',
	'RE' : 'BUILTIN\\Replicator',
	'RM' : 'BUILTIN\\Remote Management Users',
	'RO' : '<DOMAIN>\\Enterprise Read-only Domain Controllers',
	'RS' : '<DOMAIN>\\RAS and IAS Servers',
	'RU' : 'BUILTIN\\Pre-Windows 2000 Compatible Access',
	'SA' : '<DOMAIN>\\Schema Admins',
	'SI' : 'Mandatory Label\\System Mandatory Level',
	'SO' : 'BUILTIN\\Server Operators',
	'SS' : 'Service asserted identity',
	'SU' : 'NT AUTHORITY\\SERVICE',
	'SY' : 'NT AUTHORITY\\SYSTEM',
	'UD' : 'NT AUTHORITY\\USER MODE DRIVERS',
	'WD' : 'Everyone',
	'WR' : 'NT AUTHORITY\\WRITE RESTRICTED',
}
