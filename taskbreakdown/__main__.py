from taskbreakdown.api import main

main()
