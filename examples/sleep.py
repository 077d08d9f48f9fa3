import sys

import promissory
from promissory import _o
promissory.init(sys.argv[1] if len(sys.argv) > 1 else 'basic')

from promissory.stack import eventloop
from promissory.util import sleep

@_o
def print_every_second():
    for i in range(5):
        print("1")
        yield sleep(1)

@_o
def print_every_two_seconds():
    for i in range(5):
        print("2")
        yield sleep(2)
    eventloop.halt()

promissory.launch(print_every_second)
promissory.launch(print_every_two_seconds)
eventloop.run()
