from sys import exit

from phylofmt.cli import main

if __name__ == '__main__':
    exit(main())
