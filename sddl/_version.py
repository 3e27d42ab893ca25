
__version__ = "0.1.0"
__banner__ = \
"""
# sddl %s 
# Security descriptor and SDDL codec
""" % __version__ 
