from ns_guard.main import main

main()
