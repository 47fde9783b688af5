"""Run the work-status command line tool."""

from work_status.tool.work_status import main

if __name__ == "__main__":
    main()
