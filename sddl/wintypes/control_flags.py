#!/usr/bin/env python3
#
# Author:
#  Tamas Jos (@skelsec)
#

import enum

# https://docs.microsoft.com/en-us/windows/win32/secauthz/security-descriptor-control
class SE_CONTROL(enum.IntFlag):
	SE_OWNER_DEFAULTED = 0x0001			#Indicates that the SID of the owner of the security descriptor was provided by a default mechanism.
	SE_GROUP_DEFAULTED = 0x0002			#Indicates that the security identifier (SID) of the security descriptor group was provided by a default mechanism.
	SE_DACL_PRESENT = 0x0004			#Indicates a security descriptor that has a DACL. If this flag is not set, or if this flag is set and the DACL is NULL, the security descriptor allows full access to everyone.
	SE_DACL_DEFAULTED = 0x0008			#Indicates a security descriptor with a default DACL. The system ignores this flag if the SE_DACL_PRESENT flag is not set.
	SE_SACL_PRESENT = 0x0010			#Indicates a security descriptor that has a SACL.
	SE_SACL_DEFAULTED = 0x0020			#A default mechanism, rather than the original provider of the security descriptor, provided the SACL.
	SE_DACL_UNTRUSTED = 0x0040			#The ACL pointed to by the DACL is provided by an untrusted source.
	SE_SERVER_SECURITY = 0x0080			#The caller wants the server to build a DACL based on the input DACL and the caller's token.
	SE_DACL_AUTO_INHERIT_REQ = 0x0100 	#Indicates a required security descriptor in which the DACL is set up to support automatic propagation of inheritable ACEs to existing child objects.
	SE_SACL_AUTO_INHERIT_REQ = 0x0200	#Indicates a required security descriptor in which the SACL is set up to support automatic propagation of inheritable ACEs to existing child objects.
	SE_DACL_AUTO_INHERITED = 0x0400     #Indicates a security descriptor in which the DACL is set up to support automatic propagation of inheritable ACEs to existing child objects.
	SE_SACL_AUTO_INHERITED = 0x0800		#Indicates a security descriptor in which the SACL is set up to support automatic propagation of inheritable ACEs to existing child objects.
	SE_DACL_PROTECTED = 0x1000			#Prevents the DACL of the security descriptor from being modified by inheritable ACEs.
	SE_SACL_PROTECTED = 0x2000			#Prevents the SACL of the security descriptor from being modified by inheritable ACEs.
	SE_RM_CONTROL_VALID = 0x4000		#Indicates that the resource manager control is valid.
	SE_SELF_RELATIVE = 0x8000			#Indicates a self-relative security descriptor.
