#!/usr/bin/env python3
#
# Author:
#  Tamas Jos (@skelsec)
#

import sys
import json
import base64
import binascii
import logging

from tqdm import tqdm

from sddl import logger
from sddl._version import __banner__
from sddl.commons.exceptions import SDDLException
from sddl.protocol.parser import domain_from_sid
from sddl.wintypes.security_descriptor import SECURITY_DESCRIPTOR

DEFAULT_MAX_SIZE = 65536


def decode_input(data, encoding = None, domain = None, max_size = DEFAULT_MAX_SIZE):
	"""
	Turns one input line into a SECURITY_DESCRIPTOR.
	encoding is None for SDDL text, 'hex' or 'b64' for binary descriptors.
	"""
	data = data.strip()
	if encoding is None:
		return SECURITY_DESCRIPTOR.from_sddl(data, domain)

	try:
		if encoding == 'hex':
			raw = bytes.fromhex(data)
		else:
			raw = base64.b64decode(data, validate = True)
	except (ValueError, binascii.Error) as e:
		raise ValueError('Input is not valid %s: %s' % (encoding, e))
	if len(raw) > max_size:
		raise ValueError('Descriptor is %d bytes long, maximum allowed is %d' % (len(raw), max_size))
	return SECURITY_DESCRIPTOR.from_bytes(raw)

def describe(data, encoding = None, domain = None, max_size = DEFAULT_MAX_SIZE):
	"""Decodes one input and returns its JSON-able form, errors included"""
	try:
		sd = decode_input(data, encoding, domain, max_size)
	except (SDDLException, ValueError) as e:
		logger.debug('Failed to decode "%s": %s' % (data, e))
		return {'input' : data, 'error' : str(e)}
	t = sd.to_dict()
	t['input'] = data
	return t


class SDDLConsole:
	def __init__(self, encoding = None, domain = None, max_size = DEFAULT_MAX_SIZE):
		from prompt_toolkit import PromptSession
		from sddl.examples.utils.completers import SDDLCompleter

		self.encoding = encoding
		self.domain = domain
		self.max_size = max_size
		self.session = PromptSession(completer = SDDLCompleter())

	def run(self):
		print(__banner__)
		while True:
			try:
				line = self.session.prompt('[SDDL] > ')
			except KeyboardInterrupt:
				continue
			except EOFError:
				break
			if line.strip() == '':
				continue
			if line.strip() in ['exit', 'quit']:
				break
			print(json.dumps(describe(line, self.encoding, self.domain, self.max_size), indent = 4))


def main(argv = None):
	import argparse
	parser = argparse.ArgumentParser(description='Decode security descriptors from SDDL or binary form and print them as JSON')
	parser.add_argument('-v', '--verbose', action='count', default=0, help='Verbosity, can be stacked')
	parser.add_argument('-d', '--domain', help='Domain SID (S-1-5-21-x-y-z) used to resolve domain relative aliases like DA')
	parser.add_argument('-f', '--file', help='Read inputs from this file, one per line')
	parser.add_argument('-o', '--outfile', help='Write the JSON output to this file instead of stdout')
	parser.add_argument('-i', '--interactive', action='store_true', help='Start an interactive console')
	parser.add_argument('--max-size', type=int, default=DEFAULT_MAX_SIZE, help='Maximum size of a binary descriptor in bytes')
	encgroup = parser.add_mutually_exclusive_group()
	encgroup.add_argument('--hex', action='store_const', dest='encoding', const='hex', help='Inputs are hex encoded binary descriptors')
	encgroup.add_argument('--b64', action='store_const', dest='encoding', const='b64', help='Inputs are base64 encoded binary descriptors')
	parser.add_argument('input', nargs='*', help='SDDL strings (or encoded binary descriptors with --hex/--b64)')

	args = parser.parse_args(argv)

	###### VERBOSITY
	if args.verbose == 0:
		logging.basicConfig(level=logging.INFO)
	else:
		logger.setLevel(logging.DEBUG)
		logging.basicConfig(level=logging.DEBUG)

	domain = None
	if args.domain is not None:
		try:
			domain = domain_from_sid(args.domain)
		except (SDDLException, ValueError) as e:
			parser.error('Invalid domain SID: %s' % e)

	if args.interactive is True:
		SDDLConsole(args.encoding, domain, args.max_size).run()
		return 0

	inputs = list(args.input)
	if args.file is not None:
		with open(args.file, 'r', encoding = 'utf8') as f:
			for line in f:
				if line.strip() != '':
					inputs.append(line.strip())

	if len(inputs) == 0:
		parser.error('No input given')

	results = []
	if args.file is not None:
		pbar = tqdm(desc = 'Decoding descriptors', total = len(inputs))
		for data in inputs:
			results.append(describe(data, args.encoding, domain, args.max_size))
			pbar.update()
		pbar.close()
	else:
		for data in inputs:
			results.append(describe(data, args.encoding, domain, args.max_size))

	output = results[0] if len(results) == 1 else results
	if args.outfile is not None:
		with open(args.outfile, 'w', newline='', encoding = 'utf8') as f:
			json.dump(output, f, indent = 4)
		print('Results were written to %s' % args.outfile)
	else:
		print(json.dumps(output, indent = 4))

	failed = len([x for x in results if 'error' in x])
	if failed > 0:
		logger.info('%d of %d inputs could not be decoded' % (failed, len(results)))
		return 1
	return 0

if __name__ == '__main__':
	sys.exit(main())
