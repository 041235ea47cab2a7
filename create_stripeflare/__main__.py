from create_stripeflare.pipeline import main

main()
