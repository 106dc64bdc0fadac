from answer_bridge.main import main

main()
