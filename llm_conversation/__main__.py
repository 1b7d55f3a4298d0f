import sys

from llm_conversation.cli import main


sys.exit(main())
