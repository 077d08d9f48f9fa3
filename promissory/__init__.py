import os
import sys

VERSION = '0.3'

_stack_name = None
_stacks = ('basic', 'asyncio', 'tornado', 'twisted')


def init(stack_name='basic'):
    global _stack_name
    if stack_name not in _stacks:
        raise ValueError("unknown stack '%s', expected one of: %s" %
                         (stack_name, ", ".join(_stacks)))
    if 'promissory.stack.eventloop' in sys.modules and \
       _stack_name is not None and _stack_name != stack_name:
        raise RuntimeError("promissory already initialized with the '%s' "
                           "stack" % _stack_name)
    _stack_name = stack_name


def _default_stack():
    if _stack_name is None:
        init(os.environ.get('PROMISSORY_STACK', 'basic'))
    return _stack_name


from promissory.errors import PromiseRejection, InvalidYieldException
from promissory.promise import Promise, PENDING, FULFILLED, REJECTED
from promissory.core import _o, o, Return, launch, log_exception
