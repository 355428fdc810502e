from portal_automation.framework.locators import Locator, SyntaxKind


FORM = """
<html><body>
  <input id="txtDescription" type="text" value="old">
  <select id="cboStatus">
    <option>Open</option>
    <option>Posted</option>
  </select>
  <button id="btnLoad" onclick="setTimeout(function () {
      var div = document.createElement('div');
      div.id = 'lblLoaded';
      div.textContent = 'Loaded';
      document.body.appendChild(div);
  }, 300)">Load</button>
  <iframe id="iFrameMenu3" srcdoc="<span id='lblTitle'>Journal Entry</span>"></iframe>
</body></html>
"""


def test_type_text_replaces_value(open_page, actions):
    open_page(FORM)

    assert actions.type_text("txtDescription", "Month end")
    assert actions.get_text("txtDescription") == "Month end"


def test_click_and_wait_for_delayed_element(open_page, actions):
    open_page(FORM)

    assert actions.click_and_wait_for("btnLoad", "lblLoaded")
    assert actions.get_text("lblLoaded") == "Loaded"


def test_select_combo_box(open_page, actions, session):
    open_page(FORM)

    assert actions.select_combo_box("cboStatus", "Posted", tab=False)
    element = session.locator.find("cboStatus")
    assert session.driver.selected_option_texts(element) == ["Posted"]


def test_frame_switch(open_page, session):
    open_page(FORM)

    assert session.switch_to_frame("iFrameMenu3")
    assert session.driver.find_elements(SyntaxKind.IDENTIFIER, "lblTitle")
    assert session.switch_to_default_content()
    assert not session.driver.find_elements(SyntaxKind.IDENTIFIER, "lblTitle")


def test_path_expression_lookup(open_page, session):
    open_page(FORM)

    locator = Locator("//button[text()='Load']")
    assert locator.kind is SyntaxKind.PATH_EXPRESSION
    assert len(session.driver.find_elements(locator.kind, locator.value)) == 1
