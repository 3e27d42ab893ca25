from sddl.commons.exceptions import BinaryDecodeError


def read_exact(buff, length, what = 'data'):
	"""
	Reads exactly `length` bytes from `buff`
	Raises BinaryDecodeError on short reads instead of handing back a truncated chunk
	"""
	pos = buff.tell()
	data = buff.read(length)
	if len(data) != length:
		raise BinaryDecodeError('Truncated %s, expected %d bytes got %d' % (what, length, len(data)), pos)
	return data

def read_uint(buff, length, what = 'integer', byteorder = 'little'):
	return int.from_bytes(read_exact(buff, length, what), byteorder, signed = False)

def pad4(length):
	"""Returns the number of zero bytes needed to align `length` to 4 bytes"""
	return (4 - (length % 4)) % 4
