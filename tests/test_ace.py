"""Pytest tests for ACE construction, binary codec and SDDL rendering."""

import pytest

from sddl.commons.exceptions import BinaryDecodeError, UnsupportedAceType, SDDLParseError
from sddl.wintypes.guid import GUID
from sddl.wintypes.sid import SID
from sddl.wintypes.access_mask import ACCESS_MASK
from sddl.wintypes.ace import ACE, ACEType, AceFlags, ACE_OBJECT_PRESENCE, \
	ACCESS_ALLOWED_ACE, ACCESS_DENIED_ACE, ACCESS_ALLOWED_OBJECT_ACE, ACCESS_ALLOWED_CALLBACK_ACE, \
	SYSTEM_AUDIT_OBJECT_ACE, SYSTEM_MANDATORY_LABEL_ACE, SYSTEM_RESOURCE_ATTRIBUTE_ACE, acetype2ace

EVERYONE = SID.from_string('S-1-1-0')
ADMINS = SID.from_string('S-1-5-32-544')
USER_GUID = 'bf967aba-0de6-11d0-a285-00aa003049e2'
MEMBER_GUID = 'bf9679c0-0de6-11d0-a285-00aa003049e2'

# (A;OICI;GA;;;WD)
ALLOWED_WD = bytes.fromhex('00031400' + '00000010' + '010100000000000100000000')


class TestGuid:
	"""Mixed endian GUID layout."""

	def test_bytes_layout(self):
		guid = GUID.from_string(MEMBER_GUID)
		assert guid.to_bytes() == bytes.fromhex('c07996bfe60dd011a28500aa003049e2')
		assert str(GUID.from_bytes(guid.to_bytes())) == MEMBER_GUID
		assert guid.raw_size() == 16

	def test_invalid(self):
		with pytest.raises(ValueError):
			GUID.from_string('not-a-guid')


class TestAceConstruction:
	"""Constructors compute sizes and presence flags."""

	def test_basic_size(self):
		ace = ACCESS_ALLOWED_ACE.new(AceFlags.OBJECT_INHERIT_ACE, ACCESS_MASK.GENERIC_ALL, ADMINS)
		assert ace.raw_size() == 8 + 16
		assert ace.Header.AceSize == 24
		assert ace.Header.AceType == ACEType.ACCESS_ALLOWED_ACE_TYPE

	def test_object_flags_follow_guids(self):
		ace = ACCESS_ALLOWED_OBJECT_ACE.new(0, 0x10, ADMINS, object_type = GUID.from_string(USER_GUID))
		assert ace.Flags == ACE_OBJECT_PRESENCE.ACE_OBJECT_TYPE_PRESENT
		assert ace.raw_size() == 8 + 4 + 16 + 16

		ace = ACCESS_ALLOWED_OBJECT_ACE.new(0, 0x10, ADMINS, inherited_object_type = GUID.from_string(USER_GUID))
		assert ace.Flags == ACE_OBJECT_PRESENCE.ACE_INHERITED_OBJECT_TYPE_PRESENT

		ace = ACCESS_ALLOWED_OBJECT_ACE.new(0, 0x10, ADMINS)
		assert ace.Flags == ACE_OBJECT_PRESENCE.NONE
		assert ace.raw_size() == 8 + 4 + 16

	def test_application_data_is_padded(self):
		ace = ACCESS_ALLOWED_CALLBACK_ACE.new(0, ACCESS_MASK.GENERIC_READ, EVERYONE, application_data = b'artx\x01')
		assert ace.raw_size() == 28
		assert ace.raw_size() % 4 == 0
		assert len(ace.to_bytes()) == 28
		assert ace.to_bytes()[-3:] == b'\x00\x00\x00'
		assert ace.is_conditional is True

	def test_not_conditional(self):
		ace = SYSTEM_RESOURCE_ATTRIBUTE_ACE.new(0, 0, EVERYONE, application_data = b'abcd')
		assert ace.is_conditional is False

	def test_size_invariant_for_all_types(self):
		for ace_type in acetype2ace:
			cls = acetype2ace[ace_type]
			if cls.CALLBACK_ACE is True:
				ace = cls._build(0, 1, ADMINS, application_data = b'x' * 7)
			else:
				ace = cls._build(0, 1, ADMINS)
			assert ace.Header.AceSize % 4 == 0
			assert ace.Header.AceSize == len(ace.to_bytes())

	def test_rejects_fields_the_layout_lacks(self):
		with pytest.raises(ValueError):
			ACCESS_ALLOWED_ACE._build(0, 0, ADMINS, object_type = GUID.from_string(USER_GUID))
		with pytest.raises(ValueError):
			ACCESS_DENIED_ACE._build(0, 0, ADMINS, application_data = b'data')


class TestAceBinary:
	"""Binary decoding and encoding."""

	def test_decode_allowed(self):
		ace = ACE.from_bytes(ALLOWED_WD)
		assert isinstance(ace, ACCESS_ALLOWED_ACE)
		assert ace.AceFlags == AceFlags.OBJECT_INHERIT_ACE | AceFlags.CONTAINER_INHERIT_ACE
		assert ace.Mask == ACCESS_MASK.GENERIC_ALL
		assert ace.Sid == EVERYONE
		assert ace.to_bytes() == ALLOWED_WD

	def test_padding_is_skipped(self):
		data = bytes.fromhex('00031800' + '00000010' + '010100000000000100000000' + '00000000')
		ace = ACE.from_bytes(data)
		assert ace == ACE.from_bytes(ALLOWED_WD)
		assert ace.to_bytes() == ALLOWED_WD

	def test_object_roundtrip(self):
		ace = SYSTEM_AUDIT_OBJECT_ACE.new(
			AceFlags.SUCCESSFUL_ACCESS_ACE_FLAG,
			0x20,
			EVERYONE,
			GUID.from_string(MEMBER_GUID),
			GUID.from_string(USER_GUID),
		)
		data = ace.to_bytes()
		assert data[8:12] == b'\x03\x00\x00\x00'
		decoded = ACE.from_bytes(data)
		assert decoded == ace
		assert decoded.to_bytes() == data

	def test_application_data_takes_the_rest(self):
		ace = ACCESS_ALLOWED_CALLBACK_ACE.new(0, ACCESS_MASK.GENERIC_READ, EVERYONE, application_data = b'artx\x01')
		decoded = ACE.from_bytes(ace.to_bytes())
		assert decoded.ApplicationData == b'artx\x01\x00\x00\x00'
		assert decoded.is_conditional is True
		assert decoded.to_bytes() == ace.to_bytes()

	@pytest.mark.parametrize('tag', [0x03, 0x04, 0x08, 0x0E, 0x10])
	def test_reserved_types_fail(self, tag):
		data = bytes([tag]) + ALLOWED_WD[1:]
		with pytest.raises(UnsupportedAceType) as e:
			ACE.from_bytes(data)
		assert e.value.ace_type == tag

	def test_unknown_type(self):
		with pytest.raises(BinaryDecodeError, match='Unknown ACE type'):
			ACE.from_bytes(bytes([0x20]) + ALLOWED_WD[1:])

	def test_size_not_aligned(self):
		data = bytes.fromhex('00031500') + ALLOWED_WD[4:] + b'\x00'
		with pytest.raises(BinaryDecodeError, match='multiple of 4'):
			ACE.from_bytes(data)

	def test_size_too_small_for_sid(self):
		data = bytes.fromhex('00030c00') + ALLOWED_WD[4:]
		with pytest.raises(BinaryDecodeError):
			ACE.from_bytes(data)

	def test_truncated(self):
		with pytest.raises(BinaryDecodeError):
			ACE.from_bytes(ALLOWED_WD[:-4])


class TestAceSddl:
	"""SDDL rendering and parsing of single ACEs."""

	def test_render(self):
		assert ACE.from_bytes(ALLOWED_WD).to_sddl() == 'A;OICI;GA;;;WD'

	def test_render_object_guids(self):
		ace = ACCESS_ALLOWED_OBJECT_ACE.new(AceFlags.CONTAINER_INHERIT_ACE, 0x10, ADMINS, GUID.from_string(MEMBER_GUID))
		assert ace.to_sddl() == 'OA;CI;RP;%s;;BA' % MEMBER_GUID

	def test_render_mandatory_label(self):
		ace = SYSTEM_MANDATORY_LABEL_ACE.new(0, 0x1, SID.from_string('S-1-16-12288'))
		assert ace.to_sddl() == 'ML;;NW;;;HI'

	def test_parse(self):
		ace = ACE.from_sddl('(A;OICI;GA;;;WD)')
		assert ace == ACE.from_bytes(ALLOWED_WD)
		assert ACE.from_sddl('A;OICI;GA;;;WD') == ace

	def test_parse_object(self):
		text = 'OA;CIIO;RPWP;%s;%s;S-1-5-21-1-2-3-1104' % (MEMBER_GUID, USER_GUID)
		ace = ACE.from_sddl(text)
		assert isinstance(ace, ACCESS_ALLOWED_OBJECT_ACE)
		assert ace.ObjectType == GUID.from_string(MEMBER_GUID)
		assert ace.InheritedObjectType == GUID.from_string(USER_GUID)
		assert ACE.from_sddl(ace.to_sddl()) == ace

	def test_parse_errors(self):
		bad = [
			'(A;;GA;;;)',
			'(A;;GA;;BA)',
			'(Q;;GA;;;BA)',
			'(A;XX;GA;;;BA)',
			'(A;;GA;%s;;BA)' % USER_GUID,
			'(OA;;GA;1234;;BA)',
			'(AL;;GA;;;BA)',
			'(XA;;FR;;;WD;(@User.Title=="PM"))',
			'(A;;GA;;;BA',
		]
		for text in bad:
			with pytest.raises(SDDLParseError):
				ACE.from_sddl(text)
