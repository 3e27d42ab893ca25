#!/usr/bin/env python3
#
# Author:
#  Tamas Jos (@skelsec)
#


class SDDLException(Exception):
	"""Base class for every error raised by this package"""
	pass

class SDDLParseError(SDDLException):
	def __init__(self, text, position, reason):
		self.text = text
		self.position = position
		self.reason = reason
		self.message = 'SDDL parsing failed at position %s! Reason: "%s"' % (self.position, self.reason)
		super().__init__(self.message)

class IllegalSidFormat(SDDLException):
	def __init__(self, value, reason):
		self.value = value
		self.reason = reason
		self.message = 'Illegal SID format "%s"! Reason: "%s"' % (self.value, self.reason)
		super().__init__(self.message)

class MissingDomainInformation(SDDLException):
	def __init__(self, alias):
		self.alias = alias
		self.message = 'Alias "%s" is relative to a domain but no domain information was supplied' % self.alias
		super().__init__(self.message)

class BinaryDecodeError(SDDLException):
	def __init__(self, reason, offset = None):
		self.reason = reason
		self.offset = offset
		if self.offset is None:
			self.message = 'Binary decoding failed! Reason: "%s"' % self.reason
		else:
			self.message = 'Binary decoding failed at offset %s! Reason: "%s"' % (self.offset, self.reason)
		super().__init__(self.message)

class UnsupportedAceType(BinaryDecodeError):
	def __init__(self, ace_type, offset = None):
		self.ace_type = ace_type
		super().__init__('ACE type 0x%02x is not supported' % ace_type, offset)
