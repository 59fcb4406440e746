"""SecureVault Client Meta information.
   SecureVault Client drives a remote credential vault API safely.
"""
__title__ = 'securevault'
__description__ = (
   'SecureVault Client: session, reveal and registry state machines '
   'for a remote credential vault.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 SecureVault Developers'
__author__ = 'SecureVault Developers'
__author_email__ = 'dev@securevault.local'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/securevault/securevault-client'
