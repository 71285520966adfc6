"""passcli Meta information.
   passcli keeps account credentials inside a single encrypted file
   unlocked by a master password.
"""
__title__ = 'passcli'
__description__ = (
   'Local encrypted credential store unlocked by a single '
   'master password.'
)
__version__ = '0.3.0'
__license__ = 'Apache-2.0'
