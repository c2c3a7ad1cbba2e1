"""Allow `python -m pylens`."""

from pylens.cli import main

if __name__ == "__main__":
    main()
