"""Pytest tests for security descriptors, binary and SDDL forms."""

import io

import pytest

from sddl.commons.exceptions import BinaryDecodeError, MissingDomainInformation, SDDLParseError
from sddl.wintypes.sid import SID
from sddl.wintypes.acl import ACL, ACLType
from sddl.wintypes.control_flags import SE_CONTROL
from sddl.wintypes.security_descriptor import SECURITY_DESCRIPTOR

SDDL_TEXT = 'O:BAG:BAD:P(A;CIOI;GRGX;;;BU)(A;CIOI;GA;;;BA)(A;CIOI;GA;;;SY)(A;CIOI;GA;;;CO)S:P(AU;FA;GR;;;WD)'
SDDL_REVERSED = 'O:BAG:BAS:P(AU;FA;GR;;;WD)D:P(A;CIOI;GRGX;;;BU)(A;CIOI;GA;;;BA)(A;CIOI;GA;;;SY)(A;CIOI;GA;;;CO)'
DOMAIN = [1, 2, 3]

SAMPLE = b''.join([
	# revision, sbz1, control 0xb014, owner 0x14, group 0x24, sacl 0x34, dacl 0x50
	bytes.fromhex('010014b0' + '14000000' + '24000000' + '34000000' + '50000000'),
	# owner, group: S-1-5-32-544
	bytes.fromhex('0102000000000005' + '20000000' + '20020000'),
	bytes.fromhex('0102000000000005' + '20000000' + '20020000'),
	# SACL: (AU;FA;GR;;;WD)
	bytes.fromhex('02001c0001000000'),
	bytes.fromhex('02801400' + '00000080' + '010100000000000100000000'),
	# DACL: 4 ACEs
	bytes.fromhex('0200600004000000'),
	bytes.fromhex('00031800' + '000000a0' + '0102000000000005' + '20000000' + '21020000'),
	bytes.fromhex('00031800' + '00000010' + '0102000000000005' + '20000000' + '20020000'),
	bytes.fromhex('00031400' + '00000010' + '010100000000000512000000'),
	bytes.fromhex('00031400' + '00000010' + '010100000000000300000000'),
])

EXPECTED_FLAGS = SE_CONTROL.SE_DACL_PRESENT | SE_CONTROL.SE_SACL_PRESENT | \
	SE_CONTROL.SE_DACL_PROTECTED | SE_CONTROL.SE_SACL_PROTECTED | SE_CONTROL.SE_SELF_RELATIVE

# same descriptor laid out as in MS-DTYP 2.5.1.1: SACL 0x14, DACL 0x30, owner 0x90, group 0xa0
SAMPLE_ACLS_FIRST = b''.join([
	bytes.fromhex('010014b0' + '90000000' + 'a0000000' + '14000000' + '30000000'),
	SAMPLE[0x34:0x50],
	SAMPLE[0x50:0xb0],
	SAMPLE[0x14:0x24],
	SAMPLE[0x24:0x34],
])


class TestSecurityDescriptorBinary:
	"""Binary decoding and encoding."""

	def test_sample_size(self):
		assert len(SAMPLE) == 176

	def test_decode_sample(self):
		sd = SECURITY_DESCRIPTOR.from_bytes(SAMPLE)
		assert sd.Revision == 1
		assert sd.Control == EXPECTED_FLAGS
		assert sd.Owner.alias == 'BA'
		assert sd.Group.alias == 'BA'
		assert sd.Sacl == ACL.from_sddl('S:P(AU;FA;GR;;;WD)')
		assert sd.Dacl == ACL.from_sddl('D:P(A;CIOI;GRGX;;;BU)(A;CIOI;GA;;;BA)(A;CIOI;GA;;;SY)(A;CIOI;GA;;;CO)')
		assert sd.Sacl.acl_type == ACLType.SACL
		assert sd.Dacl.acl_type == ACLType.DACL

	def test_binary_roundtrip(self):
		assert SECURITY_DESCRIPTOR.from_bytes(SAMPLE).to_bytes() == SAMPLE

	def test_sddl_to_binary(self):
		sd = SECURITY_DESCRIPTOR.from_sddl(SDDL_REVERSED, DOMAIN)
		assert sd.to_bytes() == SAMPLE

	def test_binary_to_sddl(self):
		sd = SECURITY_DESCRIPTOR.from_bytes(SAMPLE)
		assert sd.to_sddl() == 'O:BAG:BAS:P(AU;FA;GR;;;WD)D:P(A;OICI;GRGX;;;BU)(A;OICI;GA;;;BA)(A;OICI;GA;;;SY)(A;OICI;GA;;;CO)'

	def test_decode_acls_before_owner(self):
		"""ACLs may come before the owner and group, offsets decide where each part is."""
		assert len(SAMPLE_ACLS_FIRST) == 176
		sd = SECURITY_DESCRIPTOR.from_bytes(SAMPLE_ACLS_FIRST)
		assert sd == SECURITY_DESCRIPTOR.from_bytes(SAMPLE)
		assert sd == SECURITY_DESCRIPTOR.from_sddl(SDDL_TEXT, DOMAIN)
		assert sd.to_sddl() == SECURITY_DESCRIPTOR.from_bytes(SAMPLE).to_sddl()
		# re-encoding uses the owner, group, SACL, DACL order
		assert sd.to_bytes() == SAMPLE

	def test_offsets_are_relative_to_descriptor_start(self):
		buff = io.BytesIO(b'\xff' * 12 + SAMPLE)
		buff.seek(12)
		sd = SECURITY_DESCRIPTOR.from_buffer(buff)
		assert sd == SECURITY_DESCRIPTOR.from_bytes(SAMPLE)

	def test_zero_offsets_are_absent(self):
		data = bytes.fromhex('01000080' + '00000000' * 4)
		sd = SECURITY_DESCRIPTOR.from_bytes(data)
		assert sd.Owner is None
		assert sd.Group is None
		assert sd.Sacl is None
		assert sd.Dacl is None
		assert sd.to_bytes() == data

	def test_defaulted_flags_do_not_hide_owner(self):
		"""Owner presence is decided by the offset, OwnerDefaulted is metadata."""
		data = bytearray(SAMPLE)
		data[2:4] = (int(EXPECTED_FLAGS) | SE_CONTROL.SE_OWNER_DEFAULTED | SE_CONTROL.SE_GROUP_DEFAULTED).to_bytes(2, 'little')
		sd = SECURITY_DESCRIPTOR.from_bytes(bytes(data))
		assert sd.Owner.alias == 'BA'
		assert sd.Group.alias == 'BA'
		assert SE_CONTROL.SE_OWNER_DEFAULTED in sd.Control

	def test_acl_needs_present_flag(self):
		data = bytearray(SAMPLE)
		data[2:4] = (int(EXPECTED_FLAGS) & ~SE_CONTROL.SE_SACL_PRESENT).to_bytes(2, 'little')
		sd = SECURITY_DESCRIPTOR.from_bytes(bytes(data))
		assert sd.Sacl is None
		assert sd.Dacl is not None

	def test_bad_revision(self):
		with pytest.raises(BinaryDecodeError, match='revision'):
			SECURITY_DESCRIPTOR.from_bytes(b'\x02' + SAMPLE[1:])

	def test_not_self_relative(self):
		data = bytes.fromhex('01000400' + '00000000' * 4)
		with pytest.raises(BinaryDecodeError, match='self-relative'):
			SECURITY_DESCRIPTOR.from_bytes(data)

	def test_truncated(self):
		with pytest.raises(BinaryDecodeError):
			SECURITY_DESCRIPTOR.from_bytes(SAMPLE[:100])
		with pytest.raises(BinaryDecodeError):
			SECURITY_DESCRIPTOR.from_bytes(SAMPLE[:10])

	def test_offset_inside_header(self):
		data = bytearray(SAMPLE)
		data[4:8] = (4).to_bytes(4, 'little')
		with pytest.raises(BinaryDecodeError, match='header'):
			SECURITY_DESCRIPTOR.from_bytes(bytes(data))


class TestSecurityDescriptorSddl:
	"""SDDL assembly and disassembly."""

	def test_parse_scenario(self):
		sd = SECURITY_DESCRIPTOR.from_sddl(SDDL_TEXT, DOMAIN)
		assert sd.Owner.alias == 'BA'
		assert sd.Group.alias == 'BA'
		assert len(sd.Dacl.aces) == 4
		assert len(sd.Sacl.aces) == 1
		assert sd.Control == EXPECTED_FLAGS

	def test_section_order_does_not_matter(self):
		assert SECURITY_DESCRIPTOR.from_sddl(SDDL_TEXT, DOMAIN) == SECURITY_DESCRIPTOR.from_sddl(SDDL_REVERSED, DOMAIN)

	def test_sddl_roundtrip(self):
		sd = SECURITY_DESCRIPTOR.from_sddl(SDDL_TEXT, DOMAIN)
		assert SECURITY_DESCRIPTOR.from_sddl(sd.to_sddl(), DOMAIN) == sd

	def test_domain_aliases(self):
		sd = SECURITY_DESCRIPTOR.from_sddl('O:DAG:DUD:(A;;GA;;;EA)', DOMAIN)
		assert str(sd.Owner) == 'S-1-5-21-000000001-000000002-000000003-512'
		assert sd.Group == SID.new_with_domain(513, DOMAIN)
		assert sd.to_sddl() == 'O:DAG:DUD:(A;;GA;;;EA)'

	def test_domain_as_sid_string(self):
		sd = SECURITY_DESCRIPTOR.from_sddl('O:DA', 'S-1-5-21-1-2-3')
		assert sd.Owner == SID.new_with_domain(512, DOMAIN)

	def test_missing_domain(self):
		with pytest.raises(MissingDomainInformation):
			SECURITY_DESCRIPTOR.from_sddl('O:DAG:BA')

	def test_owner_group_optional(self):
		sd = SECURITY_DESCRIPTOR.from_sddl('D:(A;;GA;;;SY)')
		assert sd.Owner is None
		assert sd.Group is None
		assert sd.Sacl is None
		assert sd.Control == SE_CONTROL.SE_DACL_PRESENT | SE_CONTROL.SE_SELF_RELATIVE
		assert sd.to_sddl() == 'D:(A;;GA;;;SY)'

	def test_full_sid_owner(self):
		sd = SECURITY_DESCRIPTOR.from_sddl('O:S-1-5-21-1-2-3-1013G:SY')
		assert sd.Owner.SubAuthority == [21, 1, 2, 3, 1013]
		assert sd.Group.alias == 'SY'

	def test_parse_errors(self):
		bad = [
			'O:BAO:BA',
			'X:BA',
			'O:B',
			'O:BAG:BAD:P(A;;GA;;;BA',
			'O:BAG:BAD:(A;;QQ;;;BA)',
			'O:ZZ',
		]
		for text in bad:
			with pytest.raises(SDDLParseError):
				SECURITY_DESCRIPTOR.from_sddl(text, DOMAIN)

	def test_error_position(self):
		with pytest.raises(SDDLParseError) as e:
			SECURITY_DESCRIPTOR.from_sddl('O:BAG:BAD:(A;;QQ;;;BA)')
		assert e.value.position == 14
		assert 'QQ' in e.value.reason


class TestSecurityDescriptorNew:
	"""Programmatic construction."""

	def test_flags_derived_from_parts(self):
		dacl = ACL.from_sddl('D:P(A;;GA;;;BA)')
		sd = SECURITY_DESCRIPTOR.new(owner = SID.new_builtin(544), dacl = dacl)
		assert sd.Control == SE_CONTROL.SE_SELF_RELATIVE | SE_CONTROL.SE_DACL_PRESENT | SE_CONTROL.SE_DACL_PROTECTED
		assert sd.to_sddl() == 'O:BAD:P(A;;GA;;;BA)'

	def test_decoded_dacl_brings_only_its_own_flags(self):
		"""A DACL taken from a decoded descriptor does not carry SACL or Defaulted bits along."""
		data = bytearray(SAMPLE)
		data[2:4] = (int(EXPECTED_FLAGS) | SE_CONTROL.SE_OWNER_DEFAULTED | SE_CONTROL.SE_SACL_DEFAULTED).to_bytes(2, 'little')
		decoded = SECURITY_DESCRIPTOR.from_bytes(bytes(data))
		assert decoded.Dacl.control_flags == SE_CONTROL.SE_DACL_PROTECTED
		assert decoded.Sacl.control_flags == SE_CONTROL.SE_SACL_PROTECTED

		sd = SECURITY_DESCRIPTOR.new(owner = decoded.Owner, dacl = decoded.Dacl)
		assert sd.Control == SE_CONTROL.SE_SELF_RELATIVE | SE_CONTROL.SE_DACL_PRESENT | SE_CONTROL.SE_DACL_PROTECTED
		assert SE_CONTROL.SE_SACL_PRESENT not in sd.Control
		again = SECURITY_DESCRIPTOR.from_bytes(sd.to_bytes())
		assert again.Sacl is None
		assert again.Control == sd.Control
		assert again.to_sddl() == 'O:BAD:P(A;OICI;GRGX;;;BU)(A;OICI;GA;;;BA)(A;OICI;GA;;;SY)(A;OICI;GA;;;CO)'

	def test_acl_flags_of_the_other_type_are_ignored(self):
		dacl = ACL.from_sddl('D:P(A;;GA;;;BA)')
		dacl.control_flags |= SE_CONTROL.SE_SACL_PROTECTED
		sd = SECURITY_DESCRIPTOR.new(dacl = dacl)
		assert sd.Control == SE_CONTROL.SE_SELF_RELATIVE | SE_CONTROL.SE_DACL_PRESENT | SE_CONTROL.SE_DACL_PROTECTED

	def test_extra_control(self):
		sd = SECURITY_DESCRIPTOR.new(control = SE_CONTROL.SE_OWNER_DEFAULTED)
		assert sd.Control == SE_CONTROL.SE_SELF_RELATIVE | SE_CONTROL.SE_OWNER_DEFAULTED

	def test_to_dict(self):
		d = SECURITY_DESCRIPTOR.from_bytes(SAMPLE).to_dict()
		assert d['owner']['alias'] == 'BA'
		assert d['owner']['name'] == 'BUILTIN\\Administrators'
		assert len(d['dacl']['aces']) == 4
		assert 'SE_SELF_RELATIVE' in d['control_flags']
