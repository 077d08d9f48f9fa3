import logging

import promissory

log = logging.getLogger("promissory.stack")

_stack_name = promissory._default_stack()
log.debug("promissory using the '%s' stack", _stack_name)

if _stack_name == 'twisted':
    from promissory.twisted_stack.eventloop import *
elif _stack_name == 'tornado':
    from promissory.tornado_stack.eventloop import *
elif _stack_name == 'asyncio':
    from promissory.asyncio_stack.eventloop import *
else:
    from promissory.basic_stack.eventloop import *
