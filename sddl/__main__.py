#!/usr/bin/env python3
#
# Author:
#  Tamas Jos (@skelsec)
#

import sys
from sddl.examples.sddlinfo import main

if __name__ == '__main__':
	sys.exit(main())
