import sys

from sshpick.main import main

if __name__ == '__main__':
    sys.exit(main())
